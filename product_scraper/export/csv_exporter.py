from __future__ import annotations

import csv
import io
from typing import List
from pathlib import Path

from ..profiles.base import ProductRecord


def to_csv(records: List[ProductRecord]) -> str:
    """
    Serialize records to RFC 4180 CSV with CRLF row endings. The header is
    the key order of the first record; no records gives an empty string.
    """
    if not records:
        return ""
    rows = [r.to_dict() for r in records]
    headers = list(rows[0])
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=headers, extrasaction="ignore", lineterminator="\r\n")
    w.writeheader()
    for row in rows:
        w.writerow({k: "" if row.get(k) is None else row[k] for k in headers})
    # No trailing CRLF after the last row.
    return buf.getvalue()[:-2]


class CSVExporter:
    """
    Writes products in the WooCommerce import column layout.
    """

    def export(self, records: List[ProductRecord], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(to_csv(records))
