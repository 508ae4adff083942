"""Natural-language search: language-model client, keyword fallback, service."""
from .llm_client import ChatCompletionClient, LLMNotConfiguredError, LLMResponseFormatError
from .heuristics import fallback_search
from .service import AISearchService, SearchResult
