from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from esl_annotator.application import get_annotation_service
from esl_annotator.core.taxonomy import TAXONOMY

router = APIRouter(tags=["history"])


@router.get("/history")
async def list_history(limit: int = Query(default=100, ge=1, le=1000)) -> dict:
    service = get_annotation_service()
    records = await service.list_history(limit)
    return {"items": [record.model_dump(mode="json") for record in records]}


@router.get("/history/export")
async def export_history(limit: int = Query(default=100, ge=1, le=1000)) -> PlainTextResponse:
    service = get_annotation_service()
    content = await service.export_history_csv(limit)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="history.csv"'},
    )


@router.get("/history/{record_id}")
async def get_history_record(record_id: int) -> dict:
    service = get_annotation_service()
    record = await service.get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="record not found")
    return record.model_dump(mode="json")


@router.get("/statistics")
async def get_statistics(record_id: int | None = Query(default=None)) -> dict:
    service = get_annotation_service()
    return await service.get_statistics(record_id=record_id)


@router.get("/taxonomy")
async def get_taxonomy() -> dict:
    return {"items": [asdict(item) for item in TAXONOMY]}
