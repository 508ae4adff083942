"""
Upload endpoint: the three-file import batch.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from data_alchemist.data.loader import UploadedFile, import_files
from data_alchemist.data.store import DataStore
from data_alchemist.api.dependencies import get_store
from data_alchemist.api.response_models import ImportResponse

router = APIRouter(prefix="/api", tags=["upload"])


async def _read(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    if upload is None or not upload.filename:
        return None
    return UploadedFile(filename=upload.filename, content=await upload.read())


@router.post("/upload", response_model=ImportResponse)
async def upload_files(
    clients: Optional[UploadFile] = File(None),
    workers: Optional[UploadFile] = File(None),
    tasks: Optional[UploadFile] = File(None),
    store: DataStore = Depends(get_store),
):
    """Import clients, workers and tasks files (.csv or .xlsx) as one batch."""
    result = await import_files(await _read(clients), await _read(workers), await _read(tasks))
    body = ImportResponse(
        success=result.success,
        counts=result.counts(),
        errors=result.errors,
        warnings=result.warnings,
    )
    if not result.success:
        return JSONResponse(status_code=400, content=body.model_dump())

    store.publish_import(result)
    return body
