"""
Job store.

Exports: JobStore, ALLOWED_TRANSITIONS
"""

from .job_store import ALLOWED_TRANSITIONS, JobStore

__all__ = ["ALLOWED_TRANSITIONS", "JobStore"]
