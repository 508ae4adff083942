from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from data_alchemist.config import Settings
from data_alchemist.data.schemas import EntityKind
from data_alchemist.search.heuristics import fallback_search
from data_alchemist.search.llm_client import (
    ChatCompletionClient,
    LLMNotConfiguredError,
    LLMResponseFormatError,
)
from data_alchemist.search.service import AISearchService, build_system_prompt, parse_completion, scope_data

DATA = {
    EntityKind.CLIENTS: [
        {"id": "C1", "ClientName": "Acme", "PriorityLevel": 5, "MaxBudget": 12000.0},
        {"id": "C2", "ClientName": "Beta", "PriorityLevel": 2, "MaxBudget": 800.0},
    ],
    EntityKind.WORKERS: [
        {"id": "W1", "WorkerName": "Alice", "Skills": ["python"], "PreferredPhases": []},
        {"id": "W2", "WorkerName": "Bob", "Skills": []},
    ],
    EntityKind.TASKS: [
        {"id": "T1", "TaskName": "Build", "Duration": 3, "PreferredPhases": [1, 2]},
        {"id": "T2", "TaskName": "Test", "Duration": 1, "PreferredPhases": []},
    ],
}


def _settings(**overrides) -> Settings:
    values = {"api_key": "test-key", "llm_base_url": "https://llm.test/v1/", "llm_retries": 1}
    values.update(overrides)
    return Settings(**values)


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def _ids(entities):
    return [e["id"] for e in entities]


# ---------------------------------------------------------------------------
# Keyword fallback
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "query, expected, confidence",
    [
        ("tasks with long duration", ["T1"], 0.8),
        ("workers with any skill", ["W1"], 0.8),
        ("client priority high", ["C1"], 0.8),
        ("big budget accounts", ["C1"], 0.8),
        ("anything with a phase", ["T1"], 0.8),
        ("beta", ["C2"], 0.6),
    ],
)
def test_fallback_branches(query, expected, confidence):
    entities, explanation, score = fallback_search(query, DATA)
    assert _ids(entities) == expected
    assert score == confidence
    assert explanation.startswith(f"Found {len(expected)} ")


def test_fallback_on_empty_query_matches_everything():
    entities, _, score = fallback_search("", DATA)
    assert len(entities) == 6
    assert score == 0.6


# ---------------------------------------------------------------------------
# Language-model client
# ---------------------------------------------------------------------------

def test_client_posts_chat_completion_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _completion("hello")

    client = ChatCompletionClient(_settings(), transport=httpx.MockTransport(handler))
    content = asyncio.run(client.complete(system_prompt="sys", user_prompt="user"))

    assert content == "hello"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "gpt-3.5-turbo"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["max_tokens"] == 1000
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]


def test_client_requires_api_key():
    client = ChatCompletionClient(Settings(api_key="", llm_base_url="https://llm.test/v1"))
    with pytest.raises(LLMNotConfiguredError):
        asyncio.run(client.complete(system_prompt="s", user_prompt="u"))


def test_client_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return _completion("recovered")

    client = ChatCompletionClient(_settings(llm_retries=2), transport=httpx.MockTransport(handler))
    assert asyncio.run(client.complete(system_prompt="s", user_prompt="u")) == "recovered"
    assert len(calls) == 2


def test_client_does_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401)

    client = ChatCompletionClient(_settings(llm_retries=3), transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.complete(system_prompt="s", user_prompt="u"))
    assert len(calls) == 1


def test_client_rejects_empty_content():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
    client = ChatCompletionClient(_settings(), transport=transport)
    with pytest.raises(LLMResponseFormatError):
        asyncio.run(client.complete(system_prompt="s", user_prompt="u"))


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

def test_parse_completion_json_and_prose():
    result = parse_completion('{"entities": [{"id": "C1"}], "explanation": "top client", "confidence": 0.9}')
    assert _ids(result.entities) == ["C1"]
    assert result.confidence == 0.9

    prose = parse_completion("I could not find anything.")
    assert prose.entities == []
    assert prose.explanation == "I could not find anything."
    assert prose.confidence == 0.7


def test_system_prompt_describes_schema_counts_and_sample():
    prompt = build_system_prompt(DATA)
    assert "ClientID" in prompt
    assert '"tasks": 2' in prompt
    assert "Acme" in prompt


def test_scope_data_keeps_one_kind():
    scoped = scope_data(DATA, "worker")
    assert scoped[EntityKind.CLIENTS] == []
    assert _ids(scoped[EntityKind.WORKERS]) == ["W1", "W2"]
    with pytest.raises(ValueError):
        scope_data(DATA, "vendor")


def test_service_uses_language_model_reply():
    reply = json.dumps({"entities": [{"id": "T1"}], "explanation": "long tasks", "confidence": 0.95})
    client = ChatCompletionClient(_settings(), transport=httpx.MockTransport(lambda r: _completion(reply)))
    service = AISearchService(client=client, settings=_settings())

    result = asyncio.run(service.search("long tasks", DATA))

    assert result.source == "llm"
    assert _ids(result.entities) == ["T1"]
    assert not result.superseded


def test_service_falls_back_without_api_key():
    settings = Settings(api_key="", fallback_delay=0)
    service = AISearchService(settings=settings)

    result = asyncio.run(service.search("client priority", DATA))

    assert result.source == "fallback"
    assert _ids(result.entities) == ["C1"]
    assert result.confidence == 0.8


def test_service_falls_back_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    settings = _settings()
    client = ChatCompletionClient(settings, transport=httpx.MockTransport(handler))
    result = asyncio.run(AISearchService(client=client, settings=settings).search("budget", DATA))

    assert result.source == "fallback"
    assert _ids(result.entities) == ["C1"]


def test_service_respects_entity_type_in_fallback():
    service = AISearchService(settings=Settings(api_key=""))
    result = asyncio.run(service.search("a", DATA, entity_type="task"))
    assert set(_ids(result.entities)) <= {"T1", "T2"}


def test_older_search_is_marked_superseded():
    class SlowClient:
        def __init__(self):
            self.release = asyncio.Event()

        async def complete(self, *, system_prompt: str, user_prompt: str) -> str:
            if "first" in user_prompt:
                await self.release.wait()
            return json.dumps({"entities": [], "explanation": user_prompt, "confidence": 1})

    async def run():
        client = SlowClient()
        service = AISearchService(client=client, settings=_settings())
        first = asyncio.create_task(service.search("first", DATA))
        await asyncio.sleep(0)
        second = await service.search("second", DATA)
        client.release.set()
        return await first, second, service

    first, second, service = asyncio.run(run())

    assert first.superseded
    assert not second.superseded
    assert service.generation == 2


@pytest.mark.parametrize(
    "body",
    [
        [],
        {"choices": "none"},
        {"choices": [{"message": "hi"}]},
        {"choices": [{"message": {"content": {"a": 1}}}]},
        {"choices": [{"message": {"content": ["x"]}}]},
    ],
)
def test_malformed_reply_shapes_fall_back_to_keywords(body):
    settings = _settings()
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    client = ChatCompletionClient(settings, transport=transport)

    result = asyncio.run(AISearchService(client=client, settings=settings).search("budget", DATA))

    assert result.source == "fallback"
    assert _ids(result.entities) == ["C1"]


def test_non_finite_confidence_uses_default():
    reply = '{"entities": [{"id": "C1"}], "explanation": "x", "confidence": NaN}'
    settings = _settings()
    transport = httpx.MockTransport(lambda request: _completion(reply))
    client = ChatCompletionClient(settings, transport=transport)

    result = asyncio.run(AISearchService(client=client, settings=settings).search("budget", DATA))

    assert result.source == "llm"
    assert result.confidence == 0.7
    assert parse_completion('{"confidence": Infinity}').confidence == 0.7


def test_parse_completion_requires_text():
    with pytest.raises(LLMResponseFormatError):
        parse_completion({"entities": []})
