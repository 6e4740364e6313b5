"""CSV export of scan results."""

import csv
import io
import time
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from services.archive_check.models import ScanRecord

EXPORT_COLUMNS = [
    "domain",
    "status",
    "years",
    "first_year",
    "last_year",
    "total_snapshots",
    "time_ms",
    "closest_ts",
    "archive_url",
]


def _cell(value) -> str:
    return "" if value is None else str(value)


def record_to_row(record: ScanRecord) -> dict:
    """Map a record to its export row."""
    return {
        "domain": record.domain,
        "status": record.display_status,
        "years": _cell(record.years_span),
        "first_year": _cell(record.first_year),
        "last_year": _cell(record.last_year),
        "total_snapshots": _cell(record.total_snapshot_years),
        "time_ms": _cell(record.latency_ms),
        "closest_ts": _cell(record.closest_snapshot_timestamp),
        "archive_url": _cell(record.closest_snapshot_url),
    }


def records_to_csv(records: Iterable[ScanRecord]) -> str:
    """Serialize records to CSV text. Every field is quoted; quotes are doubled."""
    buf = io.StringIO()
    writer = csv.DictWriter(
        buf,
        fieldnames=EXPORT_COLUMNS,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    writer.writeheader()
    for record in records:
        writer.writerow(record_to_row(record))
    return buf.getvalue()


def export_filename(now: Optional[float] = None) -> str:
    """Default download name, e.g. archive-check-1700000000000.csv."""
    ts = time.time() if now is None else now
    return f"archive-check-{int(ts * 1000)}.csv"


def write_csv(records: Iterable[ScanRecord], path) -> Path:
    """Write records to a CSV file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = list(records)
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(records_to_csv(records))
    logger.info(f"Exported {len(records)} rows to {path}")
    return path
