"""
Keyword search used when the language model is unavailable.
"""
from __future__ import annotations

from typing import Any

from data_alchemist.data.schemas import EntityKind

Entity = dict[str, Any]


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def fallback_search(query: str, data: dict[EntityKind, list[Entity]]) -> tuple[list[Entity], str, float]:
    """Return (entities, explanation, confidence) from simple keyword rules."""
    lower = query.lower()
    clients = data.get(EntityKind.CLIENTS, [])
    workers = data.get(EntityKind.WORKERS, [])
    tasks = data.get(EntityKind.TASKS, [])

    if "task" in lower and "duration" in lower:
        entities = [t for t in tasks if _number(t.get("Duration")) > 1]
        return entities, f"Found {len(entities)} tasks with duration greater than 1 phase.", 0.8

    if "worker" in lower and "skill" in lower:
        entities = [w for w in workers if w.get("Skills")]
        return entities, f"Found {len(entities)} workers with skills.", 0.8

    if "client" in lower and "priority" in lower:
        entities = [c for c in clients if _number(c.get("PriorityLevel")) >= 4]
        return entities, f"Found {len(entities)} clients with high priority levels.", 0.8

    if "budget" in lower or "cost" in lower:
        entities = [c for c in clients if _number(c.get("MaxBudget")) > 5000]
        return entities, f"Found {len(entities)} clients with budgets over $5000.", 0.8

    if "phase" in lower:
        entities = [e for e in [*tasks, *workers] if e.get("PreferredPhases")]
        return entities, f"Found {len(entities)} items with phase preferences.", 0.8

    words = lower.split()
    first_word = words[0] if words else ""
    entities = [
        e for e in [*clients, *workers, *tasks]
        if any(first_word in _text(v).lower() for v in e.values())
    ]
    return entities, f"Found {len(entities)} items matching your search criteria.", 0.6


def _text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return "" if value is None else str(value)
