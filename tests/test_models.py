"""Tests for clusterwatch data models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from clusterwatch.models import (
    Alert,
    AlertLevel,
    AlertLogEntry,
    ClusterHealth,
    HealthCheck,
    HealthIssue,
    HealthStatus,
    HealthThreshold,
    Node,
)


class TestHealthStatus:
    """Tests for HealthStatus ordering."""

    def test_values(self):
        """Test status values are lowercase strings."""
        assert HealthStatus.HEALTHY.value == "healthy"
        assert HealthStatus.WARNING.value == "warning"
        assert HealthStatus.CRITICAL.value == "critical"
        assert HealthStatus.UNKNOWN.value == "unknown"

    def test_severity_order(self):
        """Test CRITICAL > WARNING > UNKNOWN > HEALTHY."""
        assert HealthStatus.CRITICAL.severity > HealthStatus.WARNING.severity
        assert HealthStatus.WARNING.severity > HealthStatus.UNKNOWN.severity
        assert HealthStatus.UNKNOWN.severity > HealthStatus.HEALTHY.severity

    def test_worst_of_empty_is_healthy(self):
        """Test no statuses aggregates to HEALTHY."""
        assert HealthStatus.worst([]) == HealthStatus.HEALTHY

    def test_unknown_among_healthy_wins(self):
        """Test a single UNKNOWN check outranks healthy ones."""
        statuses = [HealthStatus.HEALTHY, HealthStatus.UNKNOWN, HealthStatus.HEALTHY]
        assert HealthStatus.worst(statuses) == HealthStatus.UNKNOWN

    def test_critical_wins(self):
        """Test CRITICAL outranks everything."""
        statuses = [HealthStatus.WARNING, HealthStatus.CRITICAL, HealthStatus.UNKNOWN]
        assert HealthStatus.worst(statuses) == HealthStatus.CRITICAL


class TestHealthThreshold:
    """Tests for HealthThreshold.evaluate."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (30.0, HealthStatus.CRITICAL),
            (15.0, HealthStatus.WARNING),
            (5.0, HealthStatus.HEALTHY),
            (25.0, HealthStatus.WARNING),
            (10.0, HealthStatus.HEALTHY),
        ],
    )
    def test_max_bounds(self, value, expected):
        """Test upper bounds with warning 10 and critical 25."""
        threshold = HealthThreshold(warning_max=10, critical_max=25)
        assert threshold.evaluate(value) == expected

    def test_min_bounds(self):
        """Test lower bounds classify low values."""
        threshold = HealthThreshold(warning_min=20, critical_min=5)
        assert threshold.evaluate(2) == HealthStatus.CRITICAL
        assert threshold.evaluate(10) == HealthStatus.WARNING
        assert threshold.evaluate(50) == HealthStatus.HEALTHY

    def test_no_bounds_is_healthy(self):
        """Test an empty threshold never flags a value."""
        assert HealthThreshold().evaluate(1e9) == HealthStatus.HEALTHY

    def test_critical_checked_first_when_narrower(self):
        """Test critical wins when critical_max <= warning_max."""
        threshold = HealthThreshold(warning_max=50, critical_max=40)
        assert threshold.evaluate(45) == HealthStatus.CRITICAL
        assert threshold.evaluate(60) == HealthStatus.CRITICAL

    def test_frozen(self):
        """Test thresholds are immutable."""
        threshold = HealthThreshold(warning_max=1)
        with pytest.raises(AttributeError):
            threshold.warning_max = 2


class TestHealthCheck:
    """Tests for HealthCheck."""

    def test_defaults(self):
        """Test a new check starts UNKNOWN with no runs."""
        check = HealthCheck(name="nodes")
        assert check.status == HealthStatus.UNKNOWN
        assert check.check_count == 0
        assert check.last_check is None

    @pytest.mark.parametrize(
        "status,expected",
        [
            (HealthStatus.HEALTHY, False),
            (HealthStatus.UNKNOWN, False),
            (HealthStatus.WARNING, True),
            (HealthStatus.CRITICAL, True),
        ],
    )
    def test_needs_alert(self, status, expected):
        """Test only WARNING and CRITICAL results raise alerts."""
        assert HealthCheck(name="x", status=status).needs_alert is expected


class TestHealthIssue:
    """Tests for HealthIssue occurrence tracking."""

    def test_add_occurrence(self):
        """Test occurrences bump count and last_seen."""
        t0 = datetime(2026, 1, 24, 14, 0, tzinfo=timezone.utc)
        issue = HealthIssue(
            id="nodes-1",
            component="nodes",
            severity=HealthStatus.WARNING,
            title="nodes is warning",
            description="15.0% of nodes unavailable",
            first_seen=t0,
            last_seen=t0,
        )
        issue.add_occurrence(t0 + timedelta(seconds=30))

        assert issue.count == 2
        assert issue.first_seen == t0
        assert issue.last_seen == t0 + timedelta(seconds=30)

    def test_older_occurrence_keeps_last_seen(self):
        """Test an out-of-order timestamp does not move last_seen backwards."""
        t0 = datetime(2026, 1, 24, 14, 0, tzinfo=timezone.utc)
        issue = HealthIssue(
            id="q-1",
            component="queue",
            severity=HealthStatus.CRITICAL,
            title="queue is critical",
            description="",
            first_seen=t0,
            last_seen=t0,
        )
        issue.add_occurrence(t0 - timedelta(minutes=1))
        assert issue.last_seen == t0
        assert issue.count == 2


class TestClusterHealth:
    """Tests for ClusterHealth snapshots."""

    def test_defaults(self):
        """Test an unevaluated snapshot is UNKNOWN and empty."""
        health = ClusterHealth()
        assert health.overall_status == HealthStatus.UNKNOWN
        assert health.checks == {}
        assert health.issues == []

    def test_copy_is_deep(self):
        """Test mutating a copy leaves the original untouched."""
        health = ClusterHealth(checks={"nodes": HealthCheck(name="nodes")})
        clone = health.copy()
        clone.checks["nodes"].status = HealthStatus.CRITICAL
        clone.checks["queue"] = HealthCheck(name="queue")

        assert health.checks["nodes"].status == HealthStatus.UNKNOWN
        assert "queue" not in health.checks


class TestAlertLevel:
    """Tests for AlertLevel."""

    def test_ordinals(self):
        """Test ordinal values used in webhook payloads."""
        assert [int(level) for level in AlertLevel] == [0, 1, 2, 3]

    def test_labels(self):
        """Test upper-case labels."""
        assert AlertLevel.INFO.label == "INFO"
        assert AlertLevel.CRITICAL.label == "CRITICAL"

    def test_ordering(self):
        """Test levels compare by severity."""
        assert AlertLevel.INFO < AlertLevel.WARNING < AlertLevel.ERROR < AlertLevel.CRITICAL

    @pytest.mark.parametrize(
        "status,expected",
        [
            (HealthStatus.CRITICAL, AlertLevel.CRITICAL),
            (HealthStatus.WARNING, AlertLevel.WARNING),
            (HealthStatus.HEALTHY, AlertLevel.INFO),
            (HealthStatus.UNKNOWN, AlertLevel.INFO),
        ],
    )
    def test_from_health_status(self, status, expected):
        """Test alert level mirrors health status."""
        assert AlertLevel.from_health_status(status) == expected


class TestAlert:
    """Tests for the Alert model."""

    def test_minimal(self):
        """Test only title is required."""
        alert = Alert(title="Disk full")
        assert alert.id == ""
        assert alert.level == AlertLevel.INFO
        assert alert.timestamp is None
        assert alert.acknowledged is False
        assert alert.dismiss_after == timedelta(0)

    def test_title_required(self):
        """Test missing title is rejected."""
        with pytest.raises(ValidationError):
            Alert()

    def test_new_id_format(self):
        """Test ids are '<source>-<nanoseconds>'."""
        alert_id = Alert.new_id("nodes")
        prefix, _, suffix = alert_id.rpartition("-")
        assert prefix == "nodes"
        assert suffix.isdigit()

    def test_level_from_int(self):
        """Test level accepts its ordinal."""
        assert Alert(title="x", level=3).level == AlertLevel.CRITICAL


class TestAlertLogEntry:
    """Tests for the persisted alert projection."""

    def test_from_alert(self):
        """Test level is written as its label."""
        ts = datetime(2026, 1, 24, 14, 30, tzinfo=timezone.utc)
        alert = Alert(
            id="queue-1",
            level=AlertLevel.WARNING,
            title="Health Check Alert: queue",
            message="150 pending jobs (threshold: 500)",
            source="queue",
            timestamp=ts,
            acknowledged=True,
        )
        entry = AlertLogEntry.from_alert(alert)

        assert entry.level == "WARNING"
        assert entry.id == "queue-1"
        assert entry.timestamp == ts
        assert set(entry.model_dump()) == {
            "timestamp",
            "level",
            "title",
            "message",
            "source",
            "id",
        }


class TestNode:
    """Tests for node state parsing."""

    @pytest.mark.parametrize(
        "state,down,draining",
        [
            ("IDLE", False, False),
            ("DOWN", True, False),
            ("DRAIN", False, True),
            ("draining", False, True),
            ("IDLE+DRAIN", False, True),
            ("DOWN+DRAIN", True, True),
            ("MIXED", False, False),
        ],
    )
    def test_state_flags(self, state, down, draining):
        """Test compound states are split into components."""
        node = Node(name="n1", state=state)
        assert node.is_down is down
        assert node.is_draining is draining
