"""
Prometheus metrics for the allocation engine
"""

from prometheus_client import Counter, Histogram, REGISTRY


def _counter(name: str, documentation: str, labels):
    # Re-importing the module (tests, reloaders) must not register twice
    try:
        return Counter(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels):
    try:
        return Histogram(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = _histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)

LOTTERY_RUNS = _counter(
    "lottery_runs_total",
    "Lottery runs by outcome",
    ["outcome"]
)
INVITATIONS_ISSUED = _counter(
    "lottery_invitations_total",
    "Entries moved to INVITED",
    ["source"]
)
ENTRY_TRANSITIONS = _counter(
    "waitlist_entry_transitions_total",
    "Waitlist entry status transitions",
    ["from_status", "to_status"]
)
NOTIFICATIONS_WRITTEN = _counter(
    "notifications_written_total",
    "Notification records written",
    ["type"]
)
NOTIFICATION_BATCH_FAILURES = _counter(
    "notification_batch_failures_total",
    "Notification batches that failed to write",
    ["type"]
)
CASCADE_STEPS = _counter(
    "cascade_steps_total",
    "Cascade deletion step outcomes",
    ["cascade", "step", "status"]
)
