"""Tests for the terminal bell, log file and desktop channels."""

import io
import subprocess
from unittest.mock import patch

import pytest

from clusterwatch.models import Alert, AlertLevel
from clusterwatch.notifications import (
    DesktopNotifyChannel,
    DesktopNotifyConfig,
    DesktopNotifyError,
    LogFileChannel,
    LogFileConfig,
    NotificationChannel,
    TerminalBellChannel,
    TerminalBellConfig,
)
from clusterwatch.notifications.desktop import resolve_platform


def make_alert(level: AlertLevel = AlertLevel.CRITICAL, **kwargs) -> Alert:
    return Alert(
        id="nodes-1",
        level=level,
        title=kwargs.get("title", "Health Check Alert: nodes"),
        message=kwargs.get("message", "No nodes found in cluster"),
        source="nodes",
    )


class TestProtocol:
    """All channels implement NotificationChannel."""

    def test_channels_satisfy_protocol(self):
        """Test each channel is a NotificationChannel."""
        channels = [
            TerminalBellChannel(TerminalBellConfig()),
            LogFileChannel(LogFileConfig()),
            DesktopNotifyChannel(DesktopNotifyConfig(), platform="win32"),
        ]
        for channel in channels:
            assert isinstance(channel, NotificationChannel)


class TestTerminalBell:
    """Tests for TerminalBellChannel."""

    def test_single_bell(self):
        """Test an ERROR alert rings once."""
        stream = io.StringIO()
        channel = TerminalBellChannel(TerminalBellConfig(repeat_count=3), stream=stream, interval=0)
        channel.notify(make_alert(AlertLevel.ERROR))
        assert stream.getvalue() == "\a"

    def test_critical_repeats(self):
        """Test CRITICAL alerts ring repeat_count times."""
        stream = io.StringIO()
        channel = TerminalBellChannel(TerminalBellConfig(repeat_count=3), stream=stream, interval=0)
        channel.notify(make_alert(AlertLevel.CRITICAL))
        assert stream.getvalue() == "\a\a\a"

    def test_interval_between_bells(self):
        """Test the delay is applied between bells only."""
        stream = io.StringIO()
        channel = TerminalBellChannel(TerminalBellConfig(repeat_count=3), stream=stream)
        with patch("clusterwatch.notifications.bell.time.sleep") as sleep:
            channel.notify(make_alert(AlertLevel.CRITICAL))
        assert sleep.call_count == 2
        sleep.assert_called_with(0.1)

    def test_below_min_level(self):
        """Test alerts below the channel minimum are silent."""
        stream = io.StringIO()
        channel = TerminalBellChannel(TerminalBellConfig(), stream=stream)
        channel.notify(make_alert(AlertLevel.WARNING))
        assert stream.getvalue() == ""

    def test_non_positive_repeat(self):
        """Test a repeat count of zero is treated as one."""
        channel = TerminalBellChannel(TerminalBellConfig(repeat_count=0))
        assert channel.config.repeat_count == 1
        assert channel.bell_count(make_alert(AlertLevel.CRITICAL)) == 1

    def test_configure(self):
        """Test configure applies typed settings only."""
        channel = TerminalBellChannel(TerminalBellConfig())
        channel.configure({"enabled": False, "repeat_count": 4, "min_alert_level": "high"})
        assert channel.is_enabled() is False
        assert channel.config.repeat_count == 4
        assert channel.config.min_alert_level == AlertLevel.ERROR


class TestLogFileChannel:
    """Tests for LogFileChannel."""

    def test_defaults(self):
        """Test the default log path and enablement."""
        channel = LogFileChannel(LogFileConfig())
        assert channel.name == "log_file"
        assert channel.is_enabled() is True
        assert channel.config.log_path == "~/.clusterwatch/alerts.log"

    def test_notify_always_succeeds(self, tmp_path):
        """Test notify writes nothing itself and never raises."""
        channel = LogFileChannel(LogFileConfig(log_path=str(tmp_path / "a.log")))
        channel.notify(make_alert())
        assert not (tmp_path / "a.log").exists()

    def test_configure(self):
        """Test enable flag and path can be changed."""
        channel = LogFileChannel(LogFileConfig())
        channel.configure({"enabled": False, "log_path": "/var/log/cw.log"})
        assert channel.is_enabled() is False
        assert channel.config.log_path == "/var/log/cw.log"


class TestResolvePlatform:
    """Tests for platform resolution."""

    @pytest.mark.parametrize(
        "value,expected",
        [("linux", "linux"), ("linux2", "linux"), ("darwin", "darwin"), ("win32", "unsupported")],
    )
    def test_values(self, value, expected):
        """Test sys.platform values map to notification platforms."""
        assert resolve_platform(value) == expected


class TestDesktopNotify:
    """Tests for DesktopNotifyChannel."""

    def test_linux_available_with_notify_send(self):
        """Test Linux availability follows notify-send on PATH."""
        with patch("clusterwatch.notifications.desktop.shutil.which", return_value="/usr/bin/notify-send"):
            channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="linux")
        assert channel.available is True
        assert channel.is_enabled() is True

    def test_linux_unavailable_without_notify_send(self):
        """Test an enabled channel reports disabled when unavailable."""
        with patch("clusterwatch.notifications.desktop.shutil.which", return_value=None):
            channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="linux")
        assert channel.is_enabled() is False

    def test_availability_checked_once(self):
        """Test the availability check runs at construction only."""
        with patch(
            "clusterwatch.notifications.desktop.shutil.which", return_value="/usr/bin/notify-send"
        ) as which:
            channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="linux")
            channel.is_enabled()
            channel.is_enabled()
        assert which.call_count == 1

    def test_macos_always_available(self):
        """Test macOS is available without a PATH lookup."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")
        assert channel.is_enabled() is True

    def test_unsupported_platform(self):
        """Test other platforms raise when notified."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="win32")
        assert channel.is_enabled() is False
        with pytest.raises(DesktopNotifyError):
            channel.notify(make_alert())

    def test_default_disabled(self):
        """Test desktop notifications are off by default."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(), platform="darwin")
        assert channel.is_enabled() is False

    def test_non_positive_timeout(self):
        """Test timeout <= 0 falls back to 10 seconds."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(timeout=0), platform="darwin")
        assert channel.config.timeout == 10

    @pytest.mark.parametrize(
        "level,urgency,icon",
        [
            (AlertLevel.ERROR, "normal", "dialog-error"),
            (AlertLevel.CRITICAL, "critical", "dialog-error"),
        ],
    )
    def test_linux_command(self, level, urgency, icon):
        """Test notify-send arguments for each level."""
        with patch("clusterwatch.notifications.desktop.shutil.which", return_value="/usr/bin/notify-send"):
            channel = DesktopNotifyChannel(
                DesktopNotifyConfig(enabled=True, timeout=5), platform="linux"
            )

        with patch("clusterwatch.notifications.desktop.subprocess.run") as run:
            channel.notify(make_alert(level))

        args = run.call_args[0][0]
        assert args == [
            "notify-send",
            "-u", urgency,
            "-t", "5000",
            "-a", "clusterwatch",
            "-i", icon,
            "Cluster Alert: Health Check Alert: nodes",
            "No nodes found in cluster",
        ]
        assert run.call_args[1]["check"] is True

    def test_linux_low_levels_use_own_icons(self):
        """Test INFO and WARNING map to low/normal urgency."""
        with patch("clusterwatch.notifications.desktop.shutil.which", return_value="/usr/bin/notify-send"):
            channel = DesktopNotifyChannel(
                DesktopNotifyConfig(enabled=True, min_alert_level=0), platform="linux"
            )

        with patch("clusterwatch.notifications.desktop.subprocess.run") as run:
            channel.notify(make_alert(AlertLevel.INFO))
            channel.notify(make_alert(AlertLevel.WARNING))

        info_args = run.call_args_list[0][0][0]
        warning_args = run.call_args_list[1][0][0]
        assert info_args[2] == "low"
        assert "dialog-information" in info_args
        assert warning_args[2] == "normal"
        assert "dialog-warning" in warning_args

    def test_macos_command_escapes_quotes(self):
        """Test osascript receives escaped text."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")

        with patch("clusterwatch.notifications.desktop.subprocess.run") as run:
            channel.notify(make_alert(message='node "gpu01" is down'))

        args = run.call_args[0][0]
        assert args[:2] == ["osascript", "-e"]
        assert 'node \\"gpu01\\" is down' in args[2]
        assert 'with title "Cluster Alert: Health Check Alert: nodes"' in args[2]

    def test_below_min_level_skipped(self):
        """Test alerts under the channel minimum do not run the helper."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")
        with patch("clusterwatch.notifications.desktop.subprocess.run") as run:
            channel.notify(make_alert(AlertLevel.WARNING))
        run.assert_not_called()

    def test_command_failure_raises(self):
        """Test a failing helper process raises DesktopNotifyError."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")
        error = subprocess.CalledProcessError(1, ["osascript"])
        with patch("clusterwatch.notifications.desktop.subprocess.run", side_effect=error):
            with pytest.raises(DesktopNotifyError, match="status 1"):
                channel.notify(make_alert())

    def test_missing_binary_raises(self):
        """Test an OSError from the helper raises DesktopNotifyError."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")
        with patch(
            "clusterwatch.notifications.desktop.subprocess.run",
            side_effect=FileNotFoundError("osascript"),
        ):
            with pytest.raises(DesktopNotifyError):
                channel.notify(make_alert())

    def test_configure(self):
        """Test configure updates typed settings."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(), platform="darwin")
        channel.configure({"enabled": True, "timeout": 3, "min_alert_level": None})
        assert channel.is_enabled() is True
        assert channel.config.timeout == 3
        assert channel.config.min_alert_level == AlertLevel.ERROR

    def test_process_timeout_raises(self):
        """Test a hung helper raises DesktopNotifyError."""
        channel = DesktopNotifyChannel(DesktopNotifyConfig(enabled=True), platform="darwin")
        with patch(
            "clusterwatch.notifications.desktop.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["osascript"], 15),
        ):
            with pytest.raises(DesktopNotifyError):
                channel.notify(make_alert())
