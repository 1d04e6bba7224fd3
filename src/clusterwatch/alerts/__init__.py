"""Alert storage and broadcast."""

from clusterwatch.alerts.store import AlertListener, AlertNotifier, AlertStore
from clusterwatch.models.alert import AlertFilter

__all__ = ["AlertFilter", "AlertListener", "AlertNotifier", "AlertStore"]
