from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from data_alchemist.config import LLM_MAX_TOKENS, LLM_TEMPERATURE, Settings, get_settings

logger = logging.getLogger(__name__)


class LLMNotConfiguredError(RuntimeError):
    """Raised when no API key or endpoint is configured."""


class LLMResponseFormatError(RuntimeError):
    """Raised when the completion response has no usable content."""


def is_retryable_http_error(exception: BaseException) -> bool:
    """Timeouts, connection failures and 5xx responses are worth another try."""
    if isinstance(exception, (httpx.TimeoutException, httpx.ConnectError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return 500 <= exception.response.status_code < 600
    return False


class ChatCompletionClient:
    """Client for an OpenAI-compatible /chat/completions endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._settings.api_key and self._settings.endpoint and self._settings.llm_model)

    async def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        """Return the assistant message content for one prompt pair."""
        if not self._settings.endpoint or not self._settings.llm_model:
            raise LLMNotConfiguredError("Language-model endpoint or model is not configured")
        if not self._settings.api_key:
            raise LLMNotConfiguredError("Language-model API key is not configured")

        payload = {
            "model": self._settings.llm_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": LLM_TEMPERATURE,
            "max_tokens": LLM_MAX_TOKENS,
        }

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, self._settings.llm_retries)),
            wait=wait_exponential(multiplier=0.5, max=4),
            retry=retry_if_exception(is_retryable_http_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self._post(payload)

        return self._extract_content(response)

    async def _post(self, payload: Dict[str, Any]) -> Any:
        url = f"{self._settings.endpoint}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.api_key}",
        }
        async with httpx.AsyncClient(timeout=self._settings.llm_timeout, transport=self._transport) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    def _extract_content(self, response: Any) -> str:
        content: Any = None
        choices = response.get("choices") if isinstance(response, dict) else None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                content = message.get("content")

        if not isinstance(content, str) or not content:
            raise LLMResponseFormatError("No text content in the completion response")
        return content
