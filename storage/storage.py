"""
Storage Engine - Main Implementation

This module contains the main Storage class that combines all storage
functionality through mixin classes.
"""

from typing import Any, Dict, Optional

from .base import META_PREFIX, StorageBase
from .bucket_operations import BucketOperationsMixin
from .events import StorageEventHub
from .object_management import ObjectManagementMixin
from .object_operations import ObjectOperationsMixin


class Storage(
    StorageBase,
    BucketOperationsMixin,
    ObjectOperationsMixin,
    ObjectManagementMixin
):
    """
    Directory-backed object storage engine.

    Provides:
    - Lazy, race-safe bucket creation
    - Object write/read/delete with a sibling meta record per object
    - Conditional reads keyed by an ETag of (object id, modification time)
    - bucket_created / object_written / object_deleted notifications

    The engine keeps no in-memory cache; the storage directory is the only
    source of truth.
    """

    def __init__(
        self,
        storage_dir: str,
        event_hub: Optional[StorageEventHub] = None,
        lock_objects: bool = True
    ):
        """
        Initialize the storage engine.

        Args:
            storage_dir: Existing directory used as the storage root
            event_hub: Listener registry shared with collaborators
            lock_objects: Serialize writes/deletes per object id

        Raises:
            ValueError: If the storage directory is missing
        """
        super().__init__(
            storage_dir=storage_dir,
            event_hub=event_hub,
            lock_objects=lock_objects
        )

    def get_configuration(self) -> Dict[str, Any]:
        """Get storage engine configuration."""
        return {
            "storage_dir": self.storage_dir,
            "meta_prefix": META_PREFIX,
            "object_locks": self.lock_objects,
            "listeners": len(self.events.listeners)
        }
