"""
Grid endpoints: filtered/sorted records, columns, cell edits, findings.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from data_alchemist.data.common import records_to_dicts, sanitize_for_json
from data_alchemist.data.query import SortConfig, query_view
from data_alchemist.data.schemas import EntityKind, get_schema
from data_alchemist.data.store import DataStore, FindingNotFoundError, RecordNotFoundError
from data_alchemist.api.dependencies import get_store, parse_kind, parse_sort
from data_alchemist.api.response_models import (
    CellUpdateRequest,
    CellUpdateResponse,
    ColumnInfo,
    ColumnsResponse,
    FindingsResponse,
    RecordsResponse,
)

router = APIRouter(prefix="/api", tags=["data"])


@router.get("/data/{kind}", response_model=RecordsResponse)
async def list_records(
    kind: EntityKind = Depends(parse_kind),
    search: Optional[str] = Query(None, description="Case-insensitive substring over all fields"),
    sort: SortConfig | None = Depends(parse_sort),
    store: DataStore = Depends(get_store),
):
    rows = records_to_dicts(store.collection(kind))
    view = query_view(rows, search, sort)
    return RecordsResponse(
        kind=kind.value,
        count=len(view),
        total=len(rows),
        records=view,
        sort_key=sort.key if sort else None,
        direction=sort.direction.value if sort else None,
    )


@router.get("/data/{kind}/columns", response_model=ColumnsResponse)
async def list_columns(kind: EntityKind = Depends(parse_kind)):
    schema = get_schema(kind)
    return ColumnsResponse(
        kind=kind.value,
        id_field=schema.id_field,
        columns=[ColumnInfo(name=s.name, label=s.label, type=s.type.value) for s in schema.fields],
    )


@router.patch("/data/{kind}/{record_id}", response_model=CellUpdateResponse)
async def update_cell(
    record_id: str,
    payload: CellUpdateRequest,
    kind: EntityKind = Depends(parse_kind),
    store: DataStore = Depends(get_store),
):
    """Edit one cell; the value is coerced the same way the importer does it."""
    try:
        record = store.update_cell(kind, record_id, payload.field, payload.value)
    except RecordNotFoundError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    finding = store.cell_finding(record_id, payload.field)
    return CellUpdateResponse(
        record=sanitize_for_json(record.to_dict()),
        finding=finding.to_dict() if finding else None,
    )


@router.get("/findings", response_model=FindingsResponse)
async def list_findings(
    severity: Optional[str] = Query(None, description="error|warning|info|all"),
    store: DataStore = Depends(get_store),
):
    try:
        findings = store.findings(severity)
    except ValueError:
        raise HTTPException(400, f"Invalid severity: {severity}")
    return FindingsResponse(findings=[f.to_dict() for f in findings], stats=store.finding_stats())


@router.delete("/findings/{finding_id}")
async def dismiss_finding(finding_id: str, store: DataStore = Depends(get_store)):
    try:
        store.dismiss_finding(finding_id)
    except FindingNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"status": "dismissed", "id": finding_id}
