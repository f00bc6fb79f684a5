"""
Review worker.

Exports: QueueConsumer, ReviewProcessor, WorkerContainer, assemble_worker, build_container
"""

from .container import WorkerContainer, assemble_worker, build_container
from .queue_consumer import QueueConsumer
from .review_processor import ReviewProcessor, parse_message

__all__ = [
    "QueueConsumer",
    "ReviewProcessor",
    "WorkerContainer",
    "assemble_worker",
    "build_container",
    "parse_message",
]
