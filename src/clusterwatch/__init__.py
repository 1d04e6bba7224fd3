"""
clusterwatch - Health evaluation and alert delivery for cluster dashboards.

This package periodically evaluates a compute cluster against configurable
thresholds, turns threshold breaches into alerts, retains them in a bounded
store and fans each alert out to independently configured delivery channels.

Features:
- Periodic health checks with two-sided warning/critical thresholds
- Capacity-bounded alert store with acknowledgement and auto-dismiss
- Concurrent, failure-isolated notification channels
  (terminal bell, log file, desktop notification, webhook)
- Size-rotated JSON-lines alert log with age-based cleanup
- Structured logging (JSON for production, text for development)
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
