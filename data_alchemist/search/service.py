"""
Natural-language search over the loaded collections.

The language model is asked first; any backend failure falls back to the
keyword heuristics. Every call takes a generation number so that a slow
answer to an older query can be recognised and kept out of the history.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import httpx

from data_alchemist.config import SEARCH_SAMPLE_SIZE, Settings, get_settings
from data_alchemist.data.schemas import ENTITY_SCHEMAS, EntityKind
from data_alchemist.search.heuristics import fallback_search
from data_alchemist.search.llm_client import (
    ChatCompletionClient,
    LLMNotConfiguredError,
    LLMResponseFormatError,
)

logger = logging.getLogger(__name__)

ENTITY_SCOPES = ("all", "client", "worker", "task")
NON_JSON_CONFIDENCE = 0.7


@dataclass
class SearchResult:
    entities: list[dict[str, Any]] = field(default_factory=list)
    explanation: str = ""
    confidence: float = 0.0
    source: str = "llm"
    superseded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def scope_data(
    data: dict[EntityKind, list[dict[str, Any]]],
    entity_type: str = "all",
) -> dict[EntityKind, list[dict[str, Any]]]:
    """Keep only the collection named by ``entity_type`` (or all three)."""
    if entity_type not in ENTITY_SCOPES:
        raise ValueError(f"Unknown entity type: {entity_type}")
    if entity_type == "all":
        return {kind: list(data.get(kind, [])) for kind in EntityKind}
    return {kind: list(data.get(kind, [])) if kind.singular == entity_type else [] for kind in EntityKind}


def build_system_prompt(data: dict[EntityKind, list[dict[str, Any]]]) -> str:
    counts = {kind.value: len(data.get(kind, [])) for kind in EntityKind}
    schema_lines = [
        f"- {kind.value.capitalize()}: {', '.join(ENTITY_SCHEMAS[kind].field_names)}"
        for kind in EntityKind
    ]
    sample = {kind.value: data.get(kind, [])[:SEARCH_SAMPLE_SIZE] for kind in EntityKind}

    return "\n".join([
        "You are a data analysis assistant for a resource allocation system.",
        "You help users find and filter data using natural language queries.",
        "",
        "Available data types:",
        *schema_lines,
        "",
        f"Current data counts: {json.dumps(counts)}",
        f"Sample records: {json.dumps(sample, default=str)}",
        "",
        "Respond with a JSON object with keys \"entities\" (the matching records),",
        "\"explanation\" (what was searched for and why) and \"confidence\" (0 to 1).",
    ])


def parse_completion(content: str) -> SearchResult:
    """Interpret the model's reply; plain prose becomes the explanation."""
    if not isinstance(content, str):
        raise LLMResponseFormatError(f"Completion content is {type(content).__name__}, not text")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        return SearchResult(entities=[], explanation=content, confidence=NON_JSON_CONFIDENCE)

    if not isinstance(payload, dict):
        return SearchResult(entities=[], explanation=content, confidence=NON_JSON_CONFIDENCE)

    entities = payload.get("entities")
    if not isinstance(entities, list):
        entities = []
    try:
        confidence = float(payload.get("confidence", NON_JSON_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = NON_JSON_CONFIDENCE
    if not math.isfinite(confidence):
        confidence = NON_JSON_CONFIDENCE

    return SearchResult(
        entities=[e for e in entities if isinstance(e, dict)],
        explanation=str(payload.get("explanation") or ""),
        confidence=min(max(confidence, 0.0), 1.0),
    )


class AISearchService:
    """Language-model search with a heuristic fallback and a supersession counter."""

    def __init__(
        self,
        client: Optional[ChatCompletionClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client or ChatCompletionClient(self._settings)
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def search(
        self,
        query: str,
        data: dict[EntityKind, list[dict[str, Any]]],
        entity_type: str = "all",
    ) -> SearchResult:
        self._generation += 1
        generation = self._generation
        scoped = scope_data(data, entity_type)

        try:
            content = await self._client.complete(
                system_prompt=build_system_prompt(scoped),
                user_prompt=f"Query: \"{query}\"",
            )
            result = parse_completion(content)
        except (LLMNotConfiguredError, LLMResponseFormatError, httpx.HTTPError, ValueError) as exc:
            logger.warning("AI search backend unavailable, using keyword fallback: %s", exc)
            if self._settings.fallback_delay > 0:
                await asyncio.sleep(self._settings.fallback_delay)
            entities, explanation, confidence = fallback_search(query, scoped)
            result = SearchResult(
                entities=entities,
                explanation=explanation,
                confidence=confidence,
                source="fallback",
            )

        if not self.is_current(generation):
            logger.info("Search %d superseded by %d: %r", generation, self._generation, query)
            result.superseded = True
        return result
