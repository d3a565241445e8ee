"""
Type definitions for the enqueuer.
Contains the job record document and the typed job descriptor.
"""

from enqueuer.types.job import (
    EnqueueOptions,
    JobDescriptor,
)
from enqueuer.types.record import JobRecord

__all__ = [
    "JobRecord",
    "EnqueueOptions",
    "JobDescriptor",
]
