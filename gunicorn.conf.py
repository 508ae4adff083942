"""Gunicorn config for container deployment."""
import os

wsgi_app = "data_alchemist.main:app"

# Bind to the platform's PORT or default 8000
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# State lives in process memory, so one worker unless WEB_CONCURRENCY says otherwise
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# Language-model searches can take up to the client timeout plus retries
timeout = 120

graceful_timeout = 30

# Keep-alive must exceed the proxy keep-alive (default 60s)
keepalive = 65

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("DATA_ALCHEMIST_LOG_LEVEL", "info").lower()
