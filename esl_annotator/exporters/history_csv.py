from __future__ import annotations

from typing import Iterable

import pandas as pd

from esl_annotator.core.schema import HistoryRecord

COLUMNS = ["id", "created_at", "original_text", "corrected_text", "error_count", "error_codes"]


def history_to_csv(records: Iterable[HistoryRecord]) -> str:
    rows = []
    for record in records:
        rows.append(
            {
                "id": record.id,
                "created_at": record.created_at.isoformat() if record.created_at else "",
                "original_text": record.original_text,
                "corrected_text": record.corrected_text,
                "error_count": record.error_count,
                "error_codes": " ".join(span.error_code for span in record.annotations),
            }
        )
    df = pd.DataFrame(rows, columns=COLUMNS)
    return df.to_csv(index=False)
