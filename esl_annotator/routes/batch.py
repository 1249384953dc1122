from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from esl_annotator.core.inputs import InputFormatError, parse_plain_text, parse_upload
from esl_annotator.workers.batch import BatchStateError, get_batch_runner

router = APIRouter(prefix="/batches", tags=["batch"])


def _start(items: list[str]) -> dict:
    if not items:
        raise HTTPException(status_code=400, detail="No valid text found in input.")
    runner = get_batch_runner()
    try:
        runner.start(items)
    except BatchStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return runner.snapshot().as_dict()


@router.post("")
async def start_batch(payload: dict) -> dict:
    """Start a batch from a JSON list of items or a block of newline separated text."""
    items = payload.get("items")
    if items is not None:
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            raise HTTPException(status_code=400, detail="items must be a list of strings")
        return _start([item.strip() for item in items if item.strip()])

    text = payload.get("text")
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="items or text is required")
    return _start(parse_plain_text(text))


@router.post("/upload")
async def upload_batch(file: UploadFile = File(...)) -> dict:
    """Start a batch from an uploaded TXT, CSV, JSON or XLSX file."""
    try:
        if not file.filename:
            raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
        payload = await file.read()
    finally:
        await file.close()

    try:
        items = parse_upload(Path(file.filename).name, payload)
    except InputFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _start(items)


@router.get("/current")
async def get_current_batch() -> dict:
    return get_batch_runner().snapshot().as_dict()


@router.post("/current/pause")
async def pause_batch() -> dict:
    runner = get_batch_runner()
    runner.pause()
    return runner.snapshot().as_dict()


@router.post("/current/resume")
async def resume_batch() -> dict:
    runner = get_batch_runner()
    runner.resume()
    return runner.snapshot().as_dict()


@router.post("/current/stop")
async def stop_batch() -> dict:
    runner = get_batch_runner()
    runner.stop()
    return runner.snapshot().as_dict()


@router.post("/current/reset")
async def reset_batch() -> dict:
    runner = get_batch_runner()
    try:
        runner.reset()
    except BatchStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return runner.snapshot().as_dict()
