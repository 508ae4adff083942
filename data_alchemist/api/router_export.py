"""
Export endpoints: cleaned collections and the rules bundle as downloads.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from data_alchemist.data.export import ExportFile, ExportFormat, export_collection, export_rules
from data_alchemist.data.schemas import EntityKind
from data_alchemist.data.store import DataStore
from data_alchemist.api.dependencies import get_store, parse_kind

router = APIRouter(prefix="/api/export", tags=["export"])


def _download(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


# Registered before /{kind} so "rules" is never read as an entity kind
@router.get("/rules")
async def export_rules_file(store: DataStore = Depends(get_store)):
    """Rules plus prioritization weights as rules.json."""
    return _download(export_rules(store.rules, store.weights))


@router.get("/{kind}")
async def export_kind(
    kind: EntityKind = Depends(parse_kind),
    format: str = Query("csv", description="csv|xlsx|json"),
    store: DataStore = Depends(get_store),
):
    try:
        fmt = ExportFormat(format)
    except ValueError:
        raise HTTPException(400, f"Invalid export format: {format}")
    findings = [f for f in store.findings() if f.entity_type == kind.singular]
    return _download(export_collection(kind, store.collection(kind), fmt, findings))
