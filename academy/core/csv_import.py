from __future__ import annotations

import csv
import io


def read_csv_rows(content: str | bytes, required_fields: list[str]) -> list[dict[str, str]]:
    """Parses a header-row CSV, rejecting the whole file if a required column is missing."""
    if isinstance(content, bytes):
        content = content.decode('utf-8-sig')
    reader = csv.DictReader(io.StringIO(content))
    fields = [name.strip() for name in (reader.fieldnames or [])]
    missing = [name for name in required_fields if name not in fields]
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")
    rows = []
    for raw in reader:
        row = {(key or '').strip(): (value or '').strip() for key, value in raw.items() if key is not None}
        if not any(row.values()):
            continue
        rows.append(row)
    return rows
