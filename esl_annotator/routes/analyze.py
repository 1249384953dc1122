from __future__ import annotations

from fastapi import APIRouter, HTTPException

from esl_annotator.application import get_annotation_service
from esl_annotator.infrastructure import FatalError, RetryableError

router = APIRouter(tags=["analysis"])


@router.post("/analyze")
async def analyze(payload: dict) -> dict:
    text = payload.get("text")
    if not text or not isinstance(text, str) or not text.strip():
        raise HTTPException(status_code=400, detail='Missing "text" in request body.')

    service = get_annotation_service()
    try:
        result = await service.analyze_text(text)
    except RetryableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except FatalError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return result.model_dump()
