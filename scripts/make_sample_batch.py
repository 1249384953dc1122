#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path

from openpyxl import Workbook


SENTENCES = [
    "He go to school every day.",
    "She is happy.",
    "I have many informations about this topic.",
    "We discussed about the problem yesterday.",
    'My teacher said "practice make perfect".',
    "They was late because of the rain.",
]


def _write(output: Path, fmt: str, sentences: list[str]) -> None:
    if fmt == "txt":
        output.write_text("\n".join(sentences) + "\n", encoding="utf-8")
    elif fmt == "csv":
        with output.open("w", newline="", encoding="utf-8") as fp:
            writer = csv.writer(fp, quoting=csv.QUOTE_ALL)
            for sentence in sentences:
                writer.writerow([sentence])
    elif fmt == "json":
        output.write_text(json.dumps(sentences, ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "essays"
        for sentence in sentences:
            sheet.append([sentence])
        workbook.save(output)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample batch input file")
    parser.add_argument("--output", required=True, help="Output path (.txt, .csv, .json or .xlsx)")
    parser.add_argument("--repeat", type=int, default=1, help="Repeat the sample sentences N times")
    args = parser.parse_args()

    output = Path(args.output)
    fmt = output.suffix.lower().lstrip(".")
    if fmt not in {"txt", "csv", "json", "xlsx"}:
        parser.error("output must end in .txt, .csv, .json or .xlsx")
    output.parent.mkdir(parents=True, exist_ok=True)

    sentences = SENTENCES * max(args.repeat, 1)
    _write(output, fmt, sentences)

    print(f"Sample batch with {len(sentences)} items written to {output}")


if __name__ == "__main__":
    main()
