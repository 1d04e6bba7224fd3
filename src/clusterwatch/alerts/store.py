"""In-memory, capacity-bounded alert store with listener broadcast."""

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

import structlog

from clusterwatch.models.alert import Alert, AlertFilter, AlertStats
from clusterwatch.models.enums import AlertLevel

log = structlog.get_logger()

DEFAULT_MAX_ALERTS = 100
DEFAULT_DISMISS_QUEUE_SIZE = 10
DEFAULT_LISTENER_WORKERS = 4
DEFAULT_NOTIFIER_WORKERS = 4
# How long a fired timer waits on a full dismiss queue before re-checking close()
_ENQUEUE_POLL = 0.5

AlertListener = Callable[[Alert], None]


@runtime_checkable
class AlertNotifier(Protocol):
    """Receives every unacknowledged alert added to the store."""

    def notify(self, alert: Alert) -> Any:
        ...


class AlertStore:
    """Most-recent-first collection of alerts with a fixed capacity.

    Listeners and the notifier run on separate worker pools, so a notifier
    stuck on a slow channel never delays UI listeners. Each call is isolated:
    an exception is logged and never reaches the caller of ``add_alert``.
    Auto-dismiss timers do not touch the collection directly: they enqueue
    the alert id on a bounded queue drained by one worker thread, which is
    the only background path that removes alerts.
    """

    def __init__(
        self,
        max_alerts: int = DEFAULT_MAX_ALERTS,
        dismiss_queue_size: int = DEFAULT_DISMISS_QUEUE_SIZE,
        listener_workers: int = DEFAULT_LISTENER_WORKERS,
        notifier_workers: int = DEFAULT_NOTIFIER_WORKERS,
    ) -> None:
        """Initialize the alert store.

        Args:
            max_alerts: Capacity; inserting beyond it evicts the oldest alert
            dismiss_queue_size: Bound of the auto-dismiss request queue
            listener_workers: Threads used to run listeners
            notifier_workers: Threads used to run the notifier
        """
        if max_alerts <= 0:
            raise ValueError(f"max_alerts must be positive, got {max_alerts}")

        self.max_alerts = max_alerts
        self._lock = threading.Lock()
        self._alerts: List[Alert] = []
        self._listeners: List[AlertListener] = []
        self._notifier: Optional[AlertNotifier] = None
        self._timers: Dict[str, threading.Timer] = {}
        self._closed = False

        self._listener_executor = ThreadPoolExecutor(
            max_workers=listener_workers,
            thread_name_prefix="alert-listener",
        )
        self._notifier_executor = ThreadPoolExecutor(
            max_workers=notifier_workers,
            thread_name_prefix="alert-notifier",
        )
        self._dismiss_queue: "queue.Queue[Optional[str]]" = queue.Queue(
            maxsize=dismiss_queue_size
        )
        self._dismiss_worker = threading.Thread(
            target=self._process_dismissals,
            name="alert-dismiss",
            daemon=True,
        )
        self._dismiss_worker.start()

    def add_alert(self, alert: Alert) -> Alert:
        """Insert an alert and broadcast it.

        The caller's object is copied. The stored copy always gets the
        insertion time as its timestamp, and an id when it has none.

        Args:
            alert: Alert to insert

        Returns:
            A copy of the alert as stored.
        """
        stored = alert.model_copy(deep=True)
        if not stored.id:
            stored.id = Alert.new_id(stored.source)
        stored.timestamp = datetime.now(timezone.utc)

        with self._lock:
            self._alerts.insert(0, stored)
            evicted = self._alerts[self.max_alerts:]
            del self._alerts[self.max_alerts:]
            evicted_timers = [
                self._timers.pop(a.id) for a in evicted if a.id in self._timers
            ]
            listeners = list(self._listeners)
            notifier = self._notifier
            snapshot = stored.model_copy(deep=True)

        for timer in evicted_timers:
            timer.cancel()
        if evicted:
            log.debug("alerts_evicted", count=len(evicted), max_alerts=self.max_alerts)

        log.debug(
            "alert_added",
            alert_id=snapshot.id,
            level=snapshot.level.label,
            source=snapshot.source,
        )

        for listener in listeners:
            self._submit(
                self._listener_executor,
                self._call_listener,
                listener,
                snapshot.model_copy(deep=True),
            )

        if notifier is not None and not snapshot.acknowledged:
            self._submit(
                self._notifier_executor,
                self._call_notifier,
                notifier,
                snapshot.model_copy(deep=True),
            )

        if snapshot.auto_dismiss and snapshot.dismiss_after > timedelta(0):
            self._schedule_dismiss(snapshot.id, snapshot.dismiss_after)

        return snapshot

    def _submit(
        self, executor: ThreadPoolExecutor, fn: Callable[..., None], *args: Any
    ) -> None:
        if self._closed:
            return
        try:
            executor.submit(fn, *args)
        except RuntimeError:
            # Pool shut down between the check and the submit
            log.debug("alert_broadcast_after_close")

    def _call_listener(self, listener: AlertListener, alert: Alert) -> None:
        try:
            listener(alert)
        except Exception as e:
            log.error(
                "alert_listener_failed",
                alert_id=alert.id,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _call_notifier(self, notifier: AlertNotifier, alert: Alert) -> None:
        try:
            notifier.notify(alert)
        except Exception as e:
            log.error(
                "alert_notifier_failed",
                alert_id=alert.id,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _schedule_dismiss(self, alert_id: str, delay: timedelta) -> None:
        timer = threading.Timer(
            delay.total_seconds(), self._request_dismiss, args=(alert_id,)
        )
        timer.daemon = True
        with self._lock:
            if self._closed:
                return
            self._timers[alert_id] = timer
        timer.start()

    def _request_dismiss(self, alert_id: str) -> None:
        """Timer callback: hand the id to the dismiss worker."""
        with self._lock:
            self._timers.pop(alert_id, None)

        while not self._closed:
            try:
                self._dismiss_queue.put(alert_id, timeout=_ENQUEUE_POLL)
                return
            except queue.Full:
                continue

    def _process_dismissals(self) -> None:
        while True:
            alert_id = self._dismiss_queue.get()
            try:
                if alert_id is None:
                    return
                if self.dismiss_alert(alert_id):
                    log.debug("alert_auto_dismissed", alert_id=alert_id)
            finally:
                self._dismiss_queue.task_done()

    def get_alerts(self, alert_filter: Optional[AlertFilter] = None) -> List[Alert]:
        """Return copies of the alerts matching ``alert_filter``, newest first.

        Args:
            alert_filter: Selection criteria; None returns every alert
        """
        with self._lock:
            return [
                a.model_copy(deep=True)
                for a in self._alerts
                if alert_filter is None or alert_filter.matches(a)
            ]

    def get_unacknowledged_alerts(self) -> List[Alert]:
        """Return copies of unacknowledged alerts, newest first."""
        with self._lock:
            return [a.model_copy(deep=True) for a in self._alerts if not a.acknowledged]

    def get_critical_alerts(self) -> List[Alert]:
        """Return copies of CRITICAL alerts, newest first."""
        return self.get_alerts(AlertFilter(levels=frozenset({AlertLevel.CRITICAL})))

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        """Return a copy of one alert, or None if it is not in the store."""
        with self._lock:
            for alert in self._alerts:
                if alert.id == alert_id:
                    return alert.model_copy(deep=True)
        return None

    def acknowledge_alert(self, alert_id: str) -> bool:
        """Mark an alert acknowledged. Acknowledging twice is harmless.

        Returns:
            True if the alert exists in the store.
        """
        with self._lock:
            for alert in self._alerts:
                if alert.id == alert_id:
                    alert.acknowledged = True
                    return True
        return False

    def dismiss_alert(self, alert_id: str) -> bool:
        """Remove an alert. Dismissing an absent id is a no-op.

        Returns:
            True if an alert was removed.
        """
        with self._lock:
            timer = self._timers.pop(alert_id, None)
            removed = False
            for i, alert in enumerate(self._alerts):
                if alert.id == alert_id:
                    del self._alerts[i]
                    removed = True
                    break

        if timer is not None:
            timer.cancel()
        return removed

    def clear_all(self) -> None:
        """Remove every alert and cancel pending auto-dismissals."""
        with self._lock:
            self._alerts.clear()
            timers = list(self._timers.values())
            self._timers.clear()

        for timer in timers:
            timer.cancel()
        log.info("alerts_cleared")

    def on_alert(self, listener: AlertListener) -> None:
        """Register a callback invoked with a copy of every new alert."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: AlertListener) -> bool:
        """Unregister a listener added with ``on_alert``.

        Returns:
            True if the listener was registered.
        """
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return False
        return True

    def set_notifier(self, notifier: Optional[AlertNotifier]) -> None:
        """Set (or clear) the notifier that receives unacknowledged alerts."""
        with self._lock:
            self._notifier = notifier

    def get_stats(self) -> AlertStats:
        """Count alerts by level and acknowledgement."""
        stats = AlertStats()
        with self._lock:
            for alert in self._alerts:
                stats.total += 1
                if alert.level == AlertLevel.INFO:
                    stats.info += 1
                elif alert.level == AlertLevel.WARNING:
                    stats.warning += 1
                elif alert.level == AlertLevel.ERROR:
                    stats.error += 1
                elif alert.level == AlertLevel.CRITICAL:
                    stats.critical += 1
                if alert.acknowledged:
                    stats.acknowledged += 1
                else:
                    stats.unacknowledged += 1
        return stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)

    def close(self) -> None:
        """Stop the dismiss worker and wait for in-flight listener calls."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()

        for timer in timers:
            timer.cancel()

        self._dismiss_queue.put(None)
        self._dismiss_worker.join()
        self._listener_executor.shutdown(wait=True)
        self._notifier_executor.shutdown(wait=True)
