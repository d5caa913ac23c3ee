"""
Distributed Lock Queue

Coordinates exclusive execution of background jobs across cooperating
processes using a quorum-based distributed lock, and tracks each job's
lifecycle state for observability.
"""

__version__ = "1.0.0"
