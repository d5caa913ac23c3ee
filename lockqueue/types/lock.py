"""
Lock-related type definitions.
"""

from dataclasses import dataclass

from lockqueue.constants import LockOutcome


@dataclass(frozen=True)
class LockLease:
    """
    An exclusive grant on a named resource. Only exists once acquired.
    Lives only for the duration of one execute-under-lock call.
    """

    resource: str
    token: str
    expiry: float
    validity: float


@dataclass(frozen=True)
class LockResult:
    """Result of running an action under a lock."""

    outcome: LockOutcome
    message: str | None = None
    lease: LockLease | None = None

    @property
    def success(self) -> bool:
        return self.outcome is LockOutcome.SUCCESS

    @classmethod
    def succeeded(cls, lease: LockLease) -> "LockResult":
        return cls(outcome=LockOutcome.SUCCESS, lease=lease)

    @classmethod
    def not_acquired(cls, resource: str) -> "LockResult":
        return cls(
            outcome=LockOutcome.ACQUISITION_FAILURE,
            message=f"Could not acquire lock on {resource}",
        )

    @classmethod
    def timed_out(cls, lease: LockLease) -> "LockResult":
        return cls(
            outcome=LockOutcome.TIMEOUT,
            message=f"Execution timed out after {lease.expiry:g}s",
            lease=lease,
        )

    @classmethod
    def failed(cls, lease: LockLease, error: BaseException) -> "LockResult":
        return cls(
            outcome=LockOutcome.EXECUTION_ERROR,
            message=str(error) or type(error).__name__,
            lease=lease,
        )
