"""
Prometheus metrics for both schedulers.
Registered on the global REGISTRY at import; exposed by ``start_metrics_server``.
"""

from typing import Optional

from loguru import logger
from prometheus_client import Counter, Gauge, Histogram, start_http_server

RELAY_CYCLES_TOTAL = Counter(
    "relay_cycles_total",
    "Scheduler cycles by outcome",
    ["scheduler", "outcome"],
)

RELAY_CYCLE_DURATION = Histogram(
    "relay_cycle_duration_seconds",
    "Wall time spent inside one scheduler cycle",
    ["scheduler"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60],
)

RELAY_ACKS_TOTAL = Counter(
    "relay_acks_total",
    "Acknowledgment toggles sent upstream",
    ["outcome"],
)

RELAY_SUBMISSIONS_TOTAL = Counter(
    "relay_submissions_total",
    "Records submitted downstream",
    ["outcome"],
)

RELAY_PENDING_RECORDS = Gauge(
    "relay_pending_records",
    "Records waiting to be relayed, as of the last backlog check",
)

RELAY_BACKLOG_DELAYED = Gauge(
    "relay_backlog_delayed",
    "1 when the pending backlog is above the configured limit",
)


def start_metrics_server(port: Optional[int]) -> bool:
    if not port:
        return False
    start_http_server(port)
    logger.info(f"Prometheus metrics exposed on :{port}")
    return True
