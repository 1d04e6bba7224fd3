"""Tests for the JSON-lines alert log."""

import json
import os
import re
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from clusterwatch.models import Alert, AlertLevel
from clusterwatch.notifications import AlertLogError, AlertLogger


def make_alert(i: int = 0) -> Alert:
    return Alert(
        id=f"queue-{i}",
        level=AlertLevel.WARNING,
        title="Health Check Alert: queue",
        message="150 pending jobs (threshold: 500)",
        source="queue",
        timestamp=datetime(2026, 1, 24, 14, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "alerts.log"


class TestLogAlert:
    """Tests for appending entries."""

    def test_creates_directory_and_file(self, log_path: Path):
        """Test the parent directory is created on first write."""
        AlertLogger(str(log_path)).log_alert(make_alert())
        assert log_path.exists()

    def test_one_json_object_per_line(self, log_path: Path):
        """Test each alert becomes one parseable line."""
        logger = AlertLogger(str(log_path))
        logger.log_alert(make_alert(1))
        logger.log_alert(make_alert(2))

        lines = log_path.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first == {
            "timestamp": "2026-01-24T14:30:00Z",
            "level": "WARNING",
            "title": "Health Check Alert: queue",
            "message": "150 pending jobs (threshold: 500)",
            "source": "queue",
            "id": "queue-1",
        }
        assert json.loads(lines[1])["id"] == "queue-2"

    def test_appends_to_existing(self, log_path: Path):
        """Test existing content is preserved."""
        log_path.parent.mkdir(parents=True)
        log_path.write_text('{"id": "old"}\n')
        AlertLogger(str(log_path)).log_alert(make_alert())
        assert len(log_path.read_text().splitlines()) == 2

    def test_expands_user(self):
        """Test '~' in the path is expanded."""
        logger = AlertLogger("~/.clusterwatch/alerts.log")
        assert "~" not in str(logger.log_path)

    def test_unwritable_directory_raises(self, tmp_path: Path):
        """Test a blocked directory raises AlertLogError."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        logger = AlertLogger(str(blocker / "alerts.log"))
        with pytest.raises(AlertLogError, match="failed to create log directory"):
            logger.log_alert(make_alert())

    def test_write_failure_raises(self, log_path: Path):
        """Test an open failure raises AlertLogError."""
        logger = AlertLogger(str(log_path))
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(AlertLogError, match="failed to write log entry"):
                logger.log_alert(make_alert())


class TestRotation:
    """Tests for size-based rotation."""

    def test_rotates_once_past_max_size(self, log_path: Path):
        """Test exceeding the ceiling produces exactly one rotated file."""
        logger = AlertLogger(str(log_path), max_size=1024)

        i = 0
        while not logger.rotated_files():
            logger.log_alert(make_alert(i))
            i += 1
            assert i < 100

        rotated = logger.rotated_files()
        assert len(rotated) == 1
        assert re.fullmatch(r"alerts\.log\.\d{8}-\d{6}", rotated[0].name)
        assert rotated[0].stat().st_size > 1024
        assert not log_path.exists()

        logger.log_alert(make_alert(i))
        assert len(log_path.read_text().splitlines()) == 1
        assert len(logger.rotated_files()) == 1

    def test_no_rotation_under_limit(self, log_path: Path):
        """Test small logs are not rotated."""
        logger = AlertLogger(str(log_path), max_size=1024 * 1024)
        for i in range(5):
            logger.log_alert(make_alert(i))
        assert logger.rotated_files() == []

    def test_rotation_name_collision(self, log_path: Path):
        """Test two rotations in the same second get distinct names."""
        logger = AlertLogger(str(log_path), max_size=10)
        with patch("clusterwatch.notifications.logger.datetime") as mock_dt:
            mock_dt.now.return_value = datetime(2026, 1, 24, 14, 30, 0)
            mock_dt.fromtimestamp.side_effect = datetime.fromtimestamp
            logger.log_alert(make_alert(1))
            logger.log_alert(make_alert(2))
            if logger._cleanup_thread is not None:
                logger._cleanup_thread.join(2.0)

        names = sorted(p.name for p in logger.rotated_files())
        assert names == ["alerts.log.20260124-143000", "alerts.log.20260124-143000-1"]

    def test_rotation_starts_cleanup(self, log_path: Path):
        """Test rotation runs cleanup in the background."""
        logger = AlertLogger(str(log_path), max_size=10)
        with patch.object(AlertLogger, "cleanup_old_logs", return_value=0) as cleanup:
            logger.log_alert(make_alert())
            logger._cleanup_thread.join(2.0)
        cleanup.assert_called_once()

    def test_rotation_failure_keeps_entry(self, log_path: Path):
        """Test a failed rename is logged and the write still succeeds."""
        logger = AlertLogger(str(log_path), max_size=10)
        with patch.object(Path, "rename", side_effect=OSError("busy")):
            logger.log_alert(make_alert())
        assert log_path.exists()
        assert logger.rotated_files() == []


class TestCleanup:
    """Tests for age-based cleanup of rotated files."""

    def test_deletes_only_old_rotated_files(self, log_path: Path):
        """Test rotated files older than max_age are deleted."""
        log_path.parent.mkdir(parents=True)
        log_path.write_text("active\n")
        old = log_path.with_name("alerts.log.20260101-000000")
        recent = log_path.with_name("alerts.log.20260123-000000")
        unrelated = log_path.with_name("other.log.20260101-000000")
        for p in (old, recent, unrelated):
            p.write_text("x\n")

        ten_days_ago = time.time() - timedelta(days=10).total_seconds()
        os.utime(old, (ten_days_ago, ten_days_ago))
        os.utime(unrelated, (ten_days_ago, ten_days_ago))

        deleted = AlertLogger(str(log_path)).cleanup_old_logs()

        assert deleted == 1
        assert not old.exists()
        assert recent.exists()
        assert unrelated.exists()
        assert log_path.exists()

    def test_missing_directory(self, tmp_path: Path):
        """Test cleanup of a never-written log is a no-op."""
        logger = AlertLogger(str(tmp_path / "nope" / "alerts.log"))
        assert logger.cleanup_old_logs() == 0

    def test_custom_max_age(self, log_path: Path):
        """Test max_age controls the retention window."""
        log_path.parent.mkdir(parents=True)
        rotated = log_path.with_name("alerts.log.20260120-000000")
        rotated.write_text("x\n")
        two_hours_ago = time.time() - 7200
        os.utime(rotated, (two_hours_ago, two_hours_ago))

        logger = AlertLogger(str(log_path), max_age=timedelta(hours=1))
        assert logger.cleanup_old_logs() == 1
