"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class Destination(StrEnum):
    """
    Where a dispatched job ends up.

    - QUEUE: due now, appended to the tail of its named FIFO list
    - SCHEDULE: due in the future, added to the scheduled sorted set
    """

    QUEUE = "queue"
    SCHEDULE = "schedule"


# Redis key names (prefixed with the configured namespace at runtime)
QUEUES_KEY = "queues"
QUEUE_KEY_PREFIX = "queue:"
SCHEDULED_JOBS_KEY = "schedule"

# Job record field names
FIELD_QUEUE = "queue"
FIELD_CLASS = "class"
FIELD_ARGS = "args"
FIELD_JID = "jid"
FIELD_ENQUEUED_AT = "enqueued_at"
FIELD_AT = "at"
FIELD_RETRY = "retry"
FIELD_RETRY_COUNT = "retry_count"
FIELD_MAX_ATTEMPTS = "max_attempts"

# Retry fields are left out of the record while they hold their default
OMIT_IF_DEFAULT_FIELDS = (FIELD_MAX_ATTEMPTS, FIELD_RETRY_COUNT, FIELD_RETRY)

# Identifiers
JID_BYTES = 12
JID_LENGTH = JID_BYTES * 2

# Time
NANOSECOND_PRECISION = 1_000_000_000.0

# Metrics names
METRIC_JOBS_ENQUEUED = "jobs_enqueued_total"
METRIC_ENQUEUE_FAILURES = "enqueue_failures_total"
METRIC_ENQUEUE_LATENCY = "enqueue_latency_seconds"

# Trace span names
SPAN_ENQUEUE_JOB = "enqueue_job"
SPAN_ENQUEUE_RECORD = "enqueue_record"
