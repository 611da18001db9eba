"""
Audit logging for storage notifications.

Registered as a Storage listener by the HTTP service so every bucket
creation, write and delete leaves a log line.
"""

import logging

from .events import BUCKET_CREATED, OBJECT_DELETED, OBJECT_WRITTEN, StorageEvent


logger = logging.getLogger(__name__)


def log_storage_event(event: StorageEvent) -> None:
    """Log a storage event at INFO level."""
    if event.kind == BUCKET_CREATED:
        logger.info(f"Bucket {{{event.bucket}}} created.")
    elif event.kind == OBJECT_WRITTEN:
        logger.info(f"Client {{{event.owner_id}}} wrote object {{{event.bucket}/{event.object_id}}}.")
    elif event.kind == OBJECT_DELETED:
        logger.info(f"Client {{{event.owner_id}}} deleted object {{{event.bucket}/{event.object_id}}}.")
