"""Append-only JSON-lines alert log with size rotation and age cleanup."""

import os
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

import structlog

from clusterwatch.models.alert import Alert, AlertLogEntry
from clusterwatch.notifications.exceptions import AlertLogError

log = structlog.get_logger()

DEFAULT_MAX_SIZE = 10 * 1024 * 1024  # 10 MiB
DEFAULT_MAX_AGE = timedelta(days=7)
ROTATION_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class AlertLogger:
    """Writes one AlertLogEntry per line for every dispatched alert.

    When the file grows past ``max_size`` it is renamed to
    ``<name>.<YYYYmmdd-HHMMSS>`` and the next write starts a fresh file.
    After each rotation a background thread deletes rotated files older
    than ``max_age``; neither step blocks the caller beyond the rename.
    """

    def __init__(
        self,
        log_path: str,
        max_size: int = DEFAULT_MAX_SIZE,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> None:
        """Initialize alert logger.

        Args:
            log_path: Path of the active log file (``~`` is expanded)
            max_size: Size in bytes above which the file is rotated
            max_age: Rotated files older than this are deleted
        """
        self.log_path = Path(log_path).expanduser()
        self.max_size = max_size
        self.max_age = max_age
        self._lock = threading.Lock()
        self._cleanup_thread: Optional[threading.Thread] = None

    def log_alert(self, alert: Alert) -> None:
        """Append an alert to the log, rotating when the size ceiling is passed.

        Raises:
            AlertLogError: If the directory or file cannot be written.
        """
        entry = AlertLogEntry.from_alert(alert)
        line = entry.model_dump_json() + "\n"

        with self._lock:
            try:
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise AlertLogError(f"failed to create log directory: {e}") from e

            try:
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line)
                    f.flush()
                    size = os.fstat(f.fileno()).st_size
            except OSError as e:
                raise AlertLogError(f"failed to write log entry: {e}") from e

            if size > self.max_size:
                self._rotate()

    def _rotate(self) -> Optional[Path]:
        """Rename the active file and start background cleanup.

        Rotation failures are logged, not raised: the entry is already written.
        """
        suffix = datetime.now().strftime(ROTATION_TIMESTAMP_FORMAT)
        rotated = self.log_path.with_name(f"{self.log_path.name}.{suffix}")
        n = 1
        while rotated.exists():
            rotated = self.log_path.with_name(f"{self.log_path.name}.{suffix}-{n}")
            n += 1

        try:
            self.log_path.rename(rotated)
        except OSError as e:
            log.warning("alert_log_rotation_failed", path=str(self.log_path), error=str(e))
            return None

        log.info("alert_log_rotated", path=str(self.log_path), rotated=str(rotated))

        self._cleanup_thread = threading.Thread(
            target=self.cleanup_old_logs,
            name="alert-log-cleanup",
            daemon=True,
        )
        self._cleanup_thread.start()
        return rotated

    def rotated_files(self) -> List[Path]:
        """Rotated siblings of the active log file, oldest name first."""
        directory = self.log_path.parent
        if not directory.exists():
            return []
        return sorted(
            p for p in directory.glob(f"{self.log_path.name}.*") if p.is_file()
        )

    def cleanup_old_logs(self) -> int:
        """Delete rotated log files older than max_age.

        Returns count of files deleted.
        """
        cutoff = datetime.now() - self.max_age
        deleted_count = 0

        for file_path in self.rotated_files():
            try:
                mtime = datetime.fromtimestamp(file_path.stat().st_mtime)
                if mtime < cutoff:
                    file_path.unlink()
                    deleted_count += 1
                    log.debug(
                        "deleted_old_alert_log",
                        path=str(file_path),
                        age_days=(datetime.now() - mtime).days,
                    )
            except OSError as e:
                log.warning("alert_log_cleanup_failed", path=str(file_path), error=str(e))

        if deleted_count > 0:
            log.info(
                "alert_log_cleanup_complete",
                deleted=deleted_count,
                max_age_days=self.max_age.days,
            )

        return deleted_count
