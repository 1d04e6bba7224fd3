"""Periodic health evaluation of the cluster."""

import copy
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import structlog
from apscheduler.schedulers.background import BackgroundScheduler

from clusterwatch.alerts.store import AlertStore
from clusterwatch.cluster.client import ClusterClient
from clusterwatch.models.alert import Alert
from clusterwatch.models.enums import AlertLevel, HealthStatus
from clusterwatch.models.health import ClusterHealth, HealthCheck, HealthIssue
from clusterwatch.monitoring.checks import DEFAULT_CHECKS, CheckFunc

log = structlog.get_logger()

DEFAULT_INTERVAL = 30.0  # seconds
JOB_ID = "health_checks"
CLUSTER_SOURCE = "cluster"
CLUSTER_WARNING_DISMISS_AFTER = timedelta(minutes=10)


class HealthMonitor:
    """Runs registered checks on a fixed interval and publishes the results.

    Each cycle:
    1. Every registered check runs against the cluster client
    2. Results, overall status and open issues are published together
    3. WARNING and CRITICAL results are turned into alerts on the store,
       plus an optional summary alert for the overall status

    Readers of ``get_health()`` never see a partially applied cycle.
    """

    def __init__(
        self,
        client: ClusterClient,
        alert_store: AlertStore,
        interval: float = DEFAULT_INTERVAL,
        register_defaults: bool = True,
        warning_dismiss_after: Optional[timedelta] = None,
        cluster_alerts: bool = False,
        repeat_alerts: bool = True,
    ) -> None:
        """Initialize health monitor.

        Args:
            client: Cluster query client handed to every check
            alert_store: Store receiving alerts for unhealthy checks
            interval: Seconds between cycles
            register_defaults: Register the built-in nodes/queue/utilization checks
            warning_dismiss_after: Auto-dismiss delay for WARNING alerts
                (None or zero keeps them until dismissed)
            cluster_alerts: Also raise one alert for a WARNING or CRITICAL
                overall status
            repeat_alerts: Alert on every cycle a check stays unhealthy; when
                False only a new or changed problem raises an alert
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.client = client
        self.alert_store = alert_store
        self.interval = interval
        self.warning_dismiss_after = warning_dismiss_after
        self.cluster_alerts = cluster_alerts
        self.repeat_alerts = repeat_alerts

        self._checks: Dict[str, CheckFunc] = {}
        self._checks_lock = threading.Lock()

        # Guards _health and _issues
        self._health = ClusterHealth()
        self._issues: Dict[str, HealthIssue] = {}
        self._health_lock = threading.Lock()

        # Serializes whole cycles (scheduled and manual)
        self._cycle_lock = threading.Lock()

        self._running = False
        self._scheduler: Optional[BackgroundScheduler] = None
        self._state_lock = threading.Lock()

        if register_defaults:
            for name, fn in DEFAULT_CHECKS.items():
                self.register_check(name, fn)

    def register_check(self, name: str, fn: CheckFunc) -> None:
        """Add a check, replacing any existing check with the same name."""
        with self._checks_lock:
            self._checks[name] = fn
        log.debug("health_check_registered", check=name)

    def unregister_check(self, name: str) -> bool:
        """Remove a check along with its last result and open issue.

        Returns:
            True if a check with that name was registered.
        """
        with self._checks_lock:
            removed = self._checks.pop(name, None) is not None

        if removed:
            with self._health_lock:
                checks = dict(self._health.checks)
                checks.pop(name, None)
                self._issues.pop(name, None)
                self._health = ClusterHealth(
                    overall_status=HealthStatus.worst(c.status for c in checks.values()),
                    checks=checks,
                    issues=[copy.copy(i) for i in self._issues.values()],
                    last_updated=self._health.last_updated,
                )
        return removed

    def start(self) -> None:
        """Start the periodic loop. The first cycle runs immediately."""
        with self._state_lock:
            if self._running:
                return

            scheduler = BackgroundScheduler(
                timezone="UTC",
                job_defaults={
                    "coalesce": True,  # Combine missed runs into one
                    "max_instances": 1,  # Never overlap cycles
                },
            )
            scheduler.add_job(
                self._tick,
                trigger="interval",
                seconds=self.interval,
                id=JOB_ID,
                name="Cluster health checks",
                next_run_time=datetime.now(timezone.utc),
            )
            self._running = True
            self._scheduler = scheduler
            scheduler.start()

        log.info("health_monitor_started", interval=self.interval)

    def stop(self) -> None:
        """Stop the loop, letting an in-flight cycle finish first."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            scheduler = self._scheduler
            self._scheduler = None

        if scheduler is not None:
            scheduler.shutdown(wait=True)
        log.info("health_monitor_stopped")

    def is_running(self) -> bool:
        return self._running

    def _tick(self) -> None:
        if not self._running:
            return
        self.run_checks()

    def get_health(self) -> ClusterHealth:
        """Return a deep copy of the latest published snapshot."""
        with self._health_lock:
            return self._health.copy()

    def run_checks(self) -> ClusterHealth:
        """Run one full evaluation cycle.

        Returns:
            Copy of the snapshot published by this cycle.
        """
        start = time.monotonic()

        with self._cycle_lock:
            with self._checks_lock:
                checks = dict(self._checks)
            with self._health_lock:
                previous = dict(self._health.checks)

            results: Dict[str, HealthCheck] = {}
            for name, fn in checks.items():
                result = self._run_check(name, fn)
                if result is None:
                    continue
                prior = previous.get(name)
                result.check_count = (prior.check_count if prior else 0) + 1
                results[name] = result

            now = datetime.now(timezone.utc)
            with self._health_lock:
                previous_status = self._health.overall_status
                published = dict(self._health.checks)
                published.update(results)
                changed = self._update_issues(results, now)
                self._health = ClusterHealth(
                    overall_status=HealthStatus.worst(
                        c.status for c in published.values()
                    ),
                    checks=published,
                    issues=[copy.copy(i) for i in self._issues.values()],
                    last_updated=now,
                )
                snapshot = self._health.copy()

        alerts = [
            self._build_alert(r)
            for name, r in results.items()
            if r.needs_alert and (self.repeat_alerts or name in changed)
        ]
        if self.cluster_alerts and (
            self.repeat_alerts or snapshot.overall_status != previous_status
        ):
            cluster_alert = self._build_cluster_alert(snapshot.overall_status)
            if cluster_alert is not None:
                alerts.insert(0, cluster_alert)

        for alert in alerts:
            self.alert_store.add_alert(alert)

        log.info(
            "health_cycle_complete",
            overall_status=snapshot.overall_status.value,
            checks=len(results),
            alerts=len(alerts),
            open_issues=len(snapshot.issues),
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return snapshot

    def _run_check(self, name: str, fn: CheckFunc) -> Optional[HealthCheck]:
        """Run one check, mapping any exception to an UNKNOWN result."""
        try:
            result = fn(self.client)
        except Exception as e:
            log.warning("health_check_failed", check=name, error=str(e))
            return HealthCheck(
                name=name,
                status=HealthStatus.UNKNOWN,
                message=f"Check failed: {e}",
                last_check=datetime.now(timezone.utc),
            )

        if result is None:
            log.debug("health_check_skipped", check=name)
            return None
        if result.last_check is None:
            result.last_check = datetime.now(timezone.utc)
        return result

    def _update_issues(self, results: Dict[str, HealthCheck], now: datetime) -> Set[str]:
        """Open, refresh or resolve issues keyed by component. Caller holds the lock.

        Returns:
            Names whose issue was opened or changed severity in this cycle.
        """
        changed: Set[str] = set()
        for name, check in results.items():
            if check.needs_alert:
                issue = self._issues.get(name)
                if issue is None or issue.severity != check.status:
                    changed.add(name)
                if issue is None:
                    self._issues[name] = HealthIssue(
                        id=f"{name}-{time.time_ns()}",
                        component=name,
                        severity=check.status,
                        title=f"{name} is {check.status.value}",
                        description=check.message,
                        first_seen=now,
                        last_seen=now,
                    )
                    log.info("health_issue_opened", component=name, severity=check.status.value)
                else:
                    issue.add_occurrence(now)
                    issue.severity = check.status
                    issue.title = f"{name} is {check.status.value}"
                    issue.description = check.message
            elif check.status == HealthStatus.HEALTHY:
                issue = self._issues.pop(name, None)
                if issue is not None:
                    issue.resolved = True
                    log.info(
                        "health_issue_resolved",
                        component=name,
                        occurrences=issue.count,
                    )
        return changed

    def _build_alert(self, check: HealthCheck) -> Alert:
        level = AlertLevel.from_health_status(check.status)
        alert = Alert(
            level=level,
            title=f"Health Check Alert: {check.name}",
            message=check.message,
            source=check.name,
        )
        if (
            level == AlertLevel.WARNING
            and self.warning_dismiss_after is not None
            and self.warning_dismiss_after > timedelta(0)
        ):
            alert.auto_dismiss = True
            alert.dismiss_after = self.warning_dismiss_after
        return alert

    def _build_cluster_alert(self, status: HealthStatus) -> Optional[Alert]:
        """Summary alert for the overall status, or None when it needs none."""
        if status == HealthStatus.CRITICAL:
            return Alert(
                level=AlertLevel.CRITICAL,
                title="Critical Cluster Health",
                message="Cluster is in critical state - immediate attention required",
                source=CLUSTER_SOURCE,
            )
        if status == HealthStatus.WARNING:
            return Alert(
                level=AlertLevel.WARNING,
                title="Cluster Health Warning",
                message="Cluster health is degraded - review health checks",
                source=CLUSTER_SOURCE,
                auto_dismiss=True,
                dismiss_after=CLUSTER_WARNING_DISMISS_AFTER,
            )
        return None

    def open_issues(self) -> List[HealthIssue]:
        """Return copies of the currently open issues."""
        with self._health_lock:
            return [copy.copy(i) for i in self._issues.values()]
