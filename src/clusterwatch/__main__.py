"""
Entry point for the clusterwatch CLI.

Usage:
    clusterwatch --show-config   Print the effective settings and notification config
    clusterwatch --test-notify   Send one test alert through every enabled channel
    clusterwatch --help          Show help message
    clusterwatch --version       Show version and exit

Exit Codes:
    0 - Success
    1 - Configuration error (invalid settings, unwritable paths)
    2 - Notification error (alert log or a channel failed)
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from clusterwatch.config import ClusterwatchSettings
    from clusterwatch.notifications import DispatchResult, NotificationConfig

from clusterwatch import __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOTIFY_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="clusterwatch",
        description="Cluster health evaluation and alert delivery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0   Success
  1   Configuration error
  2   Notification error (alert log or channel failure)

Environment Variables:
  CONFIG_PATH                             Path to YAML configuration file
  CLUSTERWATCH_LOG_LEVEL                  Logging level: DEBUG, INFO, WARNING, ERROR
  CLUSTERWATCH_LOG_FORMAT                 Log format: json or text
  CLUSTERWATCH_LOG_FILE                   Write operational logs to this file
  CLUSTERWATCH_NOTIFICATION_CONFIG_PATH   Notification settings JSON file
  CLUSTERWATCH_CLUSTER_NAME               Name reported in webhook payloads

Examples:
  # Inspect the notification settings that would be used
  clusterwatch --show-config

  # Verify channels end to end
  CLUSTERWATCH_LOG_FORMAT=text clusterwatch --test-notify
""",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective configuration as JSON, then exit",
    )
    parser.add_argument(
        "--test-notify",
        action="store_true",
        help="Send a test alert through the notification channels, then exit",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def show_config(settings: "ClusterwatchSettings", notifications: "NotificationConfig") -> None:
    """Print application settings and notification config as one JSON document."""
    document = {
        "settings": settings.model_dump(mode="json"),
        "notifications": notifications.model_dump(mode="json"),
    }
    print(json.dumps(document, indent=2))


def print_dispatch_result(result: "DispatchResult") -> None:
    """Print a per-channel summary of a dispatch."""
    if result.skipped:
        print("Test alert skipped: notifications disabled or below minimum level")
        return

    if result.logged:
        print("  alert log: OK")
    else:
        print(f"  alert log: FAILED ({result.log_error})")

    for name in sorted(result.delivered):
        print(f"  {name}: OK")
    for name, error in sorted(result.failed.items()):
        print(f"  {name}: FAILED ({error})")

    if not result.delivered and not result.failed:
        print("  no channels enabled")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for clusterwatch.

    Returns:
        Exit code (0=success, 1=config error, 2=notification error)
    """
    args = parse_args(argv)

    # Import here so --help and --version work without loading the stack
    from clusterwatch.config.loader import ConfigurationError, load_config
    from clusterwatch.logging import configure_logging, get_logger
    from clusterwatch.models import Alert, AlertLevel
    from clusterwatch.notifications import NotificationManager, load_notification_config

    try:
        settings = load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        log_file=settings.log_file,
    )
    log = get_logger()

    if args.show_config:
        show_config(settings, load_notification_config(settings.notification_config_path))
        return EXIT_SUCCESS

    if args.test_notify:
        manager = NotificationManager(
            config_path=settings.notification_config_path,
            cluster_name=settings.cluster_name,
        )
        alert = Alert(
            id=Alert.new_id("clusterwatch"),
            level=AlertLevel.CRITICAL,
            title="Test notification",
            message=f"Test alert from clusterwatch {__version__}",
            source="clusterwatch",
            timestamp=datetime.now(timezone.utc),
        )

        log.info("test_notify_started", alert_id=alert.id)
        try:
            result = manager.notify(alert)
        finally:
            manager.close()

        print(f"Test alert {alert.id}:")
        print_dispatch_result(result)
        if result.skipped or result.success:
            return EXIT_SUCCESS
        return EXIT_NOTIFY_ERROR

    build_parser().print_help()
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
