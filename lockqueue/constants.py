"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobState(StrEnum):
    """
    Job lifecycle states tracked by the status tracker.

    State transitions:
    - PENDING -> RUNNING (processor dequeued the job)
    - RUNNING -> COMPLETED (action finished under the lock)
    - RUNNING -> FAILED (lock not acquired, action raised or timed out)
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class LockOutcome(StrEnum):
    """Outcome of one execute-under-lock call."""

    SUCCESS = "success"
    ACQUISITION_FAILURE = "acquisition_failure"
    TIMEOUT = "timeout"
    EXECUTION_ERROR = "execution_error"


class ProcessorState(StrEnum):
    """Job processor lifecycle states. STOPPED is terminal."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


# Default values
DEFAULT_LOCK_EXPIRY_SECONDS = 30.0
DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS = 5.0
DEFAULT_LOCK_RETRY_INTERVAL_SECONDS = 0.1
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

# Resource key prefix for per-job locks
JOB_LOCK_PREFIX = "job:"

# Failure reasons recorded in the status tracker
REASON_LOCK_NOT_ACQUIRED = "Lock not acquired"

# Redlock clock drift allowance
CLOCK_DRIFT_FACTOR = 0.01
CLOCK_DRIFT_MIN_SECONDS = 0.002

# Metrics names
METRIC_QUEUE_DEPTH = "lockqueue_queue_depth"
METRIC_JOBS_ENQUEUED = "lockqueue_jobs_enqueued_total"
METRIC_JOBS_FINISHED = "lockqueue_jobs_finished_total"
METRIC_JOB_DURATION = "lockqueue_job_duration_seconds"
METRIC_LOCK_ATTEMPTS = "lockqueue_lock_attempts_total"

# Trace span names
SPAN_ACQUIRE_LOCK = "acquire_lock"
SPAN_EXECUTE_ACTION = "execute_locked_action"
SPAN_RELEASE_LOCK = "release_lock"
SPAN_PROCESS_JOB = "process_job"
