"""Prometheus metrics for Herald.

Queue metrics are aggregated across conversations; labelling by
conversation id would give unbounded cardinality.
"""

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# Queue metrics
QUEUE_DEPTH = Gauge(
    "herald_queue_pending_entries",
    "Entries waiting across all conversation queues",
)

ACTIVE_CONVERSATIONS = Gauge(
    "herald_active_conversations",
    "Conversations with a running drain loop",
)

HANDLER_LATENCY = Histogram(
    "herald_handler_latency_seconds",
    "Time spent handling one queue entry",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

HANDLER_FAILURES = Counter(
    "herald_handler_failures_total",
    "Queue entries whose handler failed",
    labelnames=["reason"],
)

# Auth store metrics
KEY_OPERATIONS = Counter(
    "herald_key_operations_total",
    "Signal key reads, writes and deletes",
    labelnames=["operation", "outcome"],
)

CREDS_SAVES = Counter(
    "herald_creds_saves_total",
    "Credential persistence attempts",
    labelnames=["outcome"],
)

_server_port: int | None = None


def setup_metrics(enabled: bool = True, port: int = 9090) -> bool:
    """Expose the default registry over HTTP.

    Starts the prometheus_client exporter thread once per process; later
    calls are no-ops.

    Returns:
        True if an exporter is running after the call
    """
    global _server_port
    if not enabled:
        return _server_port is not None
    if _server_port is None:
        start_http_server(port)
        _server_port = port
    return True
