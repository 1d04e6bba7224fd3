"""Webhook notifications via HTTP POST with linear-backoff retries.

Example payload::

    {
        "timestamp": "2026-01-24T14:30:00+00:00",
        "level": "CRITICAL",
        "level_int": 3,
        "title": "Health Check Alert: nodes",
        "message": "30.0% of nodes unavailable (3 down, 0 drain out of 10 total)",
        "source": "nodes",
        "alert_id": "nodes-1769265000000000000",
        "cluster_name": "clusterwatch"
    }
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
import structlog
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from clusterwatch import __version__
from clusterwatch.models.alert import Alert
from clusterwatch.notifications.base import typed_updates
from clusterwatch.notifications.config import WebhookConfig
from clusterwatch.notifications.exceptions import WebhookDeliveryError

log = structlog.get_logger()

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds; attempt n waits n * delay


class WebhookChannel:
    """Posts alerts as JSON to a configured URL.

    Only transport errors and non-2xx responses count as failures. Failed
    attempts are retried up to ``retry_count`` total attempts, waiting
    ``n * retry_delay`` seconds after the n-th failure.
    """

    def __init__(
        self,
        config: WebhookConfig,
        cluster_name: str = "clusterwatch",
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize webhook channel.

        Args:
            config: Channel settings (timeout and retry count <= 0 use defaults)
            cluster_name: Value of the payload's ``cluster_name`` field
            retry_delay: Base backoff unit in seconds
            transport: Optional httpx transport (testing)
            sleep: Function used to wait between attempts
        """
        defaults: Dict[str, Any] = {}
        if config.timeout <= 0:
            defaults["timeout"] = DEFAULT_TIMEOUT
        if config.retry_count <= 0:
            defaults["retry_count"] = DEFAULT_RETRY_COUNT
        if defaults:
            config = config.model_copy(update=defaults)

        self._config = config
        self.cluster_name = cluster_name
        self.retry_delay = retry_delay
        self._sleep = sleep
        # Guards _config and the client's timeout against concurrent configure()
        self._lock = threading.Lock()
        self._client = httpx.Client(timeout=float(config.timeout), transport=transport)

    @property
    def name(self) -> str:
        return "webhook"

    @property
    def config(self) -> WebhookConfig:
        with self._lock:
            return self._config

    def is_enabled(self) -> bool:
        with self._lock:
            return self._config.enabled and bool(self._config.url)

    def build_payload(self, alert: Alert) -> Dict[str, Any]:
        """Build the JSON body for an alert."""
        return {
            "timestamp": alert.timestamp.isoformat() if alert.timestamp else None,
            "level": alert.level.label,
            "level_int": int(alert.level),
            "title": alert.title,
            "message": alert.message,
            "source": alert.source,
            "alert_id": alert.id,
            "cluster_name": self.cluster_name,
        }

    def notify(self, alert: Alert) -> None:
        with self._lock:
            config = self._config

        if alert.level < config.min_alert_level:
            return

        body = json.dumps(self.build_payload(alert)).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"clusterwatch/{__version__}",
        }
        headers.update(config.headers)

        retrying = Retrying(
            stop=stop_after_attempt(config.retry_count),
            wait=wait_incrementing(start=self.retry_delay, increment=self.retry_delay),
            retry=retry_if_exception_type(WebhookDeliveryError),
            before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
            reraise=True,
            sleep=self._sleep,
        )

        try:
            retrying(self._send, config.url, body, headers)
        except WebhookDeliveryError as e:
            attempts = retrying.statistics.get("attempt_number", 1)
            log.warning(
                "webhook_delivery_failed",
                url=config.url,
                attempts=attempts,
                error=str(e),
            )
            raise WebhookDeliveryError(
                f"webhook notification failed after {attempts} attempts: {e}",
                attempts=attempts,
            ) from e

        # Per call; a shared channel serves concurrent dispatches
        attempts = retrying.statistics.get("attempt_number", 1)
        log.info(
            "webhook_delivered",
            url=config.url,
            alert_id=alert.id,
            attempts=attempts,
        )

    def _send(self, url: str, body: bytes, headers: Dict[str, str]) -> None:
        """Send one POST request.

        Raises:
            WebhookDeliveryError: On transport error or non-2xx status.
        """
        try:
            response = self._client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            raise WebhookDeliveryError(f"failed to send request: {e}") from e

        if not response.is_success:
            raise WebhookDeliveryError(f"webhook returned status {response.status_code}")

    def configure(self, settings: Mapping[str, Any]) -> None:
        updates = typed_updates(
            settings,
            {
                "enabled": bool,
                "url": str,
                "min_alert_level": int,
                "headers": dict,
                "timeout": int,
                "retry_count": int,
            },
        )
        with self._lock:
            self._config = self._config.model_copy(update=updates)
            if "timeout" in updates:
                self._client.timeout = httpx.Timeout(float(updates["timeout"]))

    def close(self) -> None:
        """Close the HTTP client and release its connections."""
        self._client.close()
