"""
Scan run logging - Capture a run's log output and save it compressed.
"""

import gzip
import io
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


class ScanLogger:
    """
    Captures logs during a scan run and saves them as a .log.gz file.

    Usage:
        with ScanLogger("archive_check", local_backup_dir="logs") as log:
            # run the scan
            logger.info("Scanning...")
        # Log is compressed and written to logs/archive_check_<date>_<time>.log.gz
    """

    def __init__(
        self,
        run_name: str,
        local_backup_dir: Optional[str] = None,
        level: str = "DEBUG",
    ):
        """
        Initialize the scan logger.

        Args:
            run_name: Name used in the log filename and start/end markers
            local_backup_dir: Directory for the compressed log (None keeps it in memory only)
            level: Minimum level captured
        """
        self.run_name = run_name
        self.local_backup_dir = local_backup_dir
        self.level = level

        self._log_buffer = io.StringIO()
        self._handler_id: Optional[int] = None
        self._start_time: Optional[datetime] = None
        self.saved_path: Optional[Path] = None

    def __enter__(self) -> "ScanLogger":
        """Start capturing logs."""
        self._start_time = datetime.now()

        self._handler_id = logger.add(
            self._log_buffer,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}",
            level=self.level,
        )

        logger.info(f"=== Scan started: {self.run_name} ===")
        logger.info(f"Start time: {self._start_time.isoformat()}")

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop capturing and save the log."""
        end_time = datetime.now()
        duration = end_time - self._start_time

        if exc_type:
            logger.error(f"Scan failed with error: {exc_val}")

        logger.info(f"End time: {end_time.isoformat()}")
        logger.info(f"Duration: {duration}")
        logger.info(f"=== Scan finished: {self.run_name} ===")

        if self._handler_id is not None:
            logger.remove(self._handler_id)
            self._handler_id = None

        if self.local_backup_dir:
            try:
                self.saved_path = self._save_local(self.content, end_time)
                logger.info(f"Log saved locally: {self.saved_path}")
            except OSError as e:
                logger.error(f"Local save failed: {e}")

        return False  # Don't suppress exceptions

    @property
    def content(self) -> str:
        return self._log_buffer.getvalue()

    def _save_local(self, content: str, timestamp: datetime) -> Path:
        """Compress and save the log file."""
        date_str = timestamp.strftime("%Y-%m-%d")
        time_str = timestamp.strftime("%H%M%S")
        filename = f"{self.run_name}_{date_str}_{time_str}.log.gz"

        backup_dir = Path(self.local_backup_dir)
        backup_dir.mkdir(parents=True, exist_ok=True)

        filepath = backup_dir / filename
        filepath.write_bytes(gzip.compress(content.encode("utf-8")))
        return filepath


@contextmanager
def capture_scan_logs(
    run_name: str,
    local_backup_dir: Optional[str] = None,
    level: str = "DEBUG",
):
    """
    Context manager to capture a scan run's logs.

    Usage:
        with capture_scan_logs("archive_check", "logs") as log:
            logger.info("Processing...")
    """
    with ScanLogger(run_name, local_backup_dir=local_backup_dir, level=level) as log:
        yield log
