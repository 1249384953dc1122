"""Turn pasted text and uploaded files into ordered lists of work items.

Every parser returns the non-empty, stripped entries in file order; each entry
becomes one item of a batch.
"""
from __future__ import annotations

import io
import json
from pathlib import Path

import pandas as pd


class InputFormatError(ValueError):
    """Raised when an upload cannot be turned into work items."""


def _normalise_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_plain_text(text: str) -> list[str]:
    return [line.strip() for line in _normalise_newlines(text).split("\n") if line.strip()]


def parse_delimited(text: str) -> list[str]:
    """Split quote-aware records, one item per record.

    A quoted section may contain line breaks, and ``""`` inside quotes is a
    literal quote. The record itself is kept whole, delimiters included.
    """

    normalised = _normalise_newlines(text)
    items: list[str] = []
    current: list[str] = []
    in_quote = False
    index = 0
    while index < len(normalised):
        char = normalised[index]
        if in_quote:
            if char == '"':
                if index + 1 < len(normalised) and normalised[index + 1] == '"':
                    current.append('"')
                    index += 1
                else:
                    in_quote = False
            else:
                current.append(char)
        elif char == '"':
            in_quote = True
        elif char == "\n":
            record = "".join(current).strip()
            if record:
                items.append(record)
            current = []
        else:
            current.append(char)
        index += 1

    record = "".join(current).strip()
    if record:
        items.append(record)
    return items


def parse_json_items(text: str) -> list[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputFormatError(f"Invalid JSON file: {exc.msg}") from exc
    if not isinstance(data, list):
        raise InputFormatError("JSON input must be an array")

    items: list[str] = []
    for entry in data:
        value = entry if isinstance(entry, str) else json.dumps(entry, ensure_ascii=False)
        if value.strip():
            items.append(value.strip())
    return items


def parse_workbook(payload: bytes) -> list[str]:
    """Read the first column of the first sheet of an ``.xlsx`` workbook."""

    try:
        frame = pd.read_excel(io.BytesIO(payload), sheet_name=0, header=None, dtype=str, engine="openpyxl")
    except Exception as exc:  # openpyxl raises a variety of zip/xml errors
        raise InputFormatError("Unreadable workbook") from exc
    if frame.empty:
        return []
    column = frame.iloc[:, 0].dropna()
    return [str(value).strip() for value in column if str(value).strip()]


def parse_upload(filename: str, payload: bytes) -> list[str]:
    suffix = Path(filename).suffix.lower()
    if suffix in {".xlsx", ".xlsm"}:
        return parse_workbook(payload)

    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InputFormatError("Uploaded file must be UTF-8 text") from exc

    if suffix == ".json":
        return parse_json_items(text)
    return parse_delimited(text)


__all__ = [
    "InputFormatError",
    "parse_delimited",
    "parse_json_items",
    "parse_plain_text",
    "parse_upload",
    "parse_workbook",
]
