"""
FastAPI dependencies: DataStore and search service singletons, path and sort parsing.
"""
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Query

from data_alchemist.data.query import SortConfig, SortDirection, toggle_sort
from data_alchemist.data.schemas import EntityKind
from data_alchemist.data.store import DataStore
from data_alchemist.search.service import AISearchService

# ---------------------------------------------------------------------------
# Singletons (set during startup)
# ---------------------------------------------------------------------------
_store: DataStore | None = None
_search: AISearchService | None = None


def set_store(store: DataStore) -> None:
    global _store
    _store = store


def get_store() -> DataStore:
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


def set_search_service(service: AISearchService) -> None:
    global _search
    _search = service


def get_search_service() -> AISearchService:
    if _search is None:
        raise HTTPException(503, "Search service not initialized yet")
    return _search


# ---------------------------------------------------------------------------
# Path / query parsing
# ---------------------------------------------------------------------------

def parse_kind(kind: str) -> EntityKind:
    try:
        return EntityKind(kind)
    except ValueError:
        raise HTTPException(404, f"Unknown entity type: {kind}")


def parse_sort(
    sort_key: Optional[str] = Query(None, description="Column to sort by"),
    direction: Optional[str] = Query(None, description="asc|desc"),
    toggle: Optional[str] = Query(None, description="Column header clicked; advances asc -> desc -> unsorted"),
) -> SortConfig | None:
    """Parse sort query parameters into a SortConfig.

    With ``toggle`` the current sort (sort_key, direction) is advanced the way
    a header click does.
    """
    current = None
    if sort_key:
        try:
            current = SortConfig(sort_key, SortDirection(direction or "asc"))
        except ValueError:
            raise HTTPException(400, f"Invalid direction: {direction}")
    if toggle:
        return toggle_sort(current, toggle)
    return current
