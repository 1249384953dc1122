"""Integration with the Gemini ``generateContent`` HTTP API."""
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from esl_annotator.core.schema import AnalysisResult
from esl_annotator.core.spans import normalise_spans
from esl_annotator.core.taxonomy import taxonomy_json

from .classifier import FatalError, RetryableError, RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 503}

SYSTEM_INSTRUCTION_TEMPLATE = """
You are an ESL Writing Error Annotation and Feedback System.
Your ONLY source of knowledge is the provided Taxonomy.
You must NOT use external grammar knowledge, teaching experience, or intuition.

STRICT RULES:
1. Only use error_codes present in the provided Taxonomy.
2. Do NOT infer, extend, merge, or invent error types.
3. macro_code MUST match the taxonomy relationship.
4. If no taxonomy definition matches, return an empty errors array [].
5. Be conservative: if unsure, do not annotate.
6. Do NOT reverse-engineer error types from the corrected sentence.
7. If an error_code is not in the taxonomy, it is invalid and must not be output.

TAXONOMY:
{taxonomy}

Output MUST be valid JSON matching the schema.
"""

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "corrected_text": {"type": "STRING", "description": "The corrected version of the text."},
        "annotations": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "original_span": {"type": "STRING", "description": "The specific text segment containing the error."},
                    "corrected_span": {"type": "STRING", "description": "The corrected text segment."},
                    "start_index": {"type": "INTEGER", "description": "Zero-based start index of the error in the original text."},
                    "end_index": {"type": "INTEGER", "description": "Zero-based end index (exclusive) of the error in the original text."},
                    "error_code": {"type": "STRING", "description": "The error code from the taxonomy."},
                    "macro_code": {"type": "STRING", "description": "The macro code from the taxonomy."},
                    "explanation": {"type": "STRING", "description": "The explanation from the taxonomy."},
                },
                "required": [
                    "original_span",
                    "corrected_span",
                    "start_index",
                    "end_index",
                    "error_code",
                    "macro_code",
                    "explanation",
                ],
            },
        },
    },
    "required": ["corrected_text", "annotations"],
}


class GeminiClassifierClient:
    """Annotates text with a Gemini model, retrying when the service pushes back."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash",
        api_base: str = "https://generativelanguage.googleapis.com",
        timeout: float = 60.0,
        temperature: float = 0.1,
        http_client: httpx.AsyncClient | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._request_url = f"{parsed.scheme}://{parsed.netloc}/v1beta/models/{model}:generateContent"
        self._system_instruction = SYSTEM_INSTRUCTION_TEMPLATE.format(taxonomy=taxonomy_json())
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._retry = retry or RetryPolicy()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_payload(self, text: str) -> dict[str, Any]:
        prompt = f'Analyze the following text for ESL errors based strictly on the taxonomy:\n\n"{text}"'
        return {
            "systemInstruction": {"parts": [{"text": self._system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
                "temperature": self._temperature,
            },
        }

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return response.reason_phrase

    @staticmethod
    def _extract_json_text(body: Any) -> str:
        candidates = body.get("candidates") if isinstance(body, dict) else None
        if not candidates:
            raise FatalError("Empty response from AI")
        parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
        text = "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise FatalError("Empty response from AI")
        return text

    def _parse_result(self, original_text: str, json_text: str) -> AnalysisResult:
        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as exc:
            raise FatalError(f"Malformed response from AI: {exc.msg}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("corrected_text"), str):
            raise FatalError("Malformed response from AI: missing corrected_text")

        raw_annotations = data.get("annotations") or []
        if not isinstance(raw_annotations, list):
            raise FatalError("Malformed response from AI: annotations must be a list")

        return AnalysisResult(
            original_text=original_text,
            corrected_text=data["corrected_text"],
            annotations=normalise_spans(original_text, raw_annotations),
        )

    async def _attempt(self, text: str) -> AnalysisResult:
        try:
            response = await self._client.post(
                self._request_url,
                params={"key": self._api_key},
                json=self._build_payload(text),
            )
        except httpx.HTTPError as exc:
            raise FatalError(f"Request to classification service failed: {exc}") from exc

        if response.status_code in RETRYABLE_STATUS:
            raise RetryableError(f"{response.status_code} {self._error_message(response)}")
        if response.is_error:
            raise FatalError(f"{response.status_code} {self._error_message(response)}")

        try:
            body = response.json()
        except ValueError as exc:
            raise FatalError("Response body is not JSON") from exc
        return self._parse_result(text, self._extract_json_text(body))

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def classify(self, text: str) -> AnalysisResult:
        if not self._api_key:
            raise FatalError("API key is missing")
        try:
            return await call_with_retry(lambda: self._attempt(text), self._retry)
        except FatalError as exc:
            logger.error("Gemini analysis error: %s", exc)
            raise

    async def aclose(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            await self._client.aclose()


__all__ = ["GeminiClassifierClient", "RESPONSE_SCHEMA"]
