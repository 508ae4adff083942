"""
Meta endpoints: health and active view.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from data_alchemist.config import get_settings
from data_alchemist.data.store import DataStore
from data_alchemist.api.dependencies import get_store
from data_alchemist.api.response_models import HealthResponse

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(store: DataStore = Depends(get_store)):
    counts = store.counts()
    return HealthResponse(
        status="ok",
        rows=store.row_count(),
        clients=counts["clients"],
        workers=counts["workers"],
        tasks=counts["tasks"],
        active_view=store.active_view,
        llm_configured=bool(get_settings().api_key),
    )
