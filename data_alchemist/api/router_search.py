"""
AI search endpoints: natural-language query and history.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from data_alchemist.data.common import records_to_dicts, sanitize_for_json
from data_alchemist.data.schemas import EntityKind
from data_alchemist.data.store import DataStore
from data_alchemist.search.service import AISearchService
from data_alchemist.api.dependencies import get_search_service, get_store
from data_alchemist.api.response_models import SearchHistoryResponse, SearchRequest, SearchResponse

router = APIRouter(prefix="/api/ai-search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def ai_search(
    payload: SearchRequest,
    store: DataStore = Depends(get_store),
    service: AISearchService = Depends(get_search_service),
):
    """Search the loaded data in plain language; falls back to keyword rules."""
    if payload.data is not None:
        unknown = set(payload.data) - {kind.value for kind in EntityKind}
        if unknown:
            raise HTTPException(400, f"Unknown entity types in data: {', '.join(sorted(unknown))}")
        data = {kind: payload.data.get(kind.value, []) for kind in EntityKind}
    else:
        data = {kind: records_to_dicts(store.collection(kind)) for kind in EntityKind}

    result = await service.search(payload.query, data, payload.entity_type)
    body = sanitize_for_json(result.to_dict())
    if not result.superseded:
        store.record_search(payload.query, body)
    return SearchResponse(**body)


@router.get("/history", response_model=SearchHistoryResponse)
async def search_history(store: DataStore = Depends(get_store)):
    return SearchHistoryResponse(history=list(store.search_history))


@router.delete("/history")
async def clear_history(store: DataStore = Depends(get_store)):
    store.clear_search_history()
    return {"status": "cleared"}
