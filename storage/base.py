"""
Base storage engine class with initialization and utility methods.

This module contains the StorageBase class with the storage root, on-disk
layout helpers, name validation, id/fingerprint generation and the event
listener registry shared by all operation mixins.

On-disk layout::

    <storage_dir>/<bucket>/<object_id>     content
    <storage_dir>/<bucket>/_<object_id>    meta record (JSON)
"""

import asyncio
import hashlib
import mimetypes
import os
import re
import uuid
from contextlib import nullcontext
from typing import Optional

from shared.errors import StorageIOError, ValidationFailure
from shared.models.object_meta import ObjectMeta, now_ms

from .events import StorageEvent, StorageEventHub, StorageListener
from .locks import KeyedLock


META_PREFIX = "_"
DEFAULT_MIME_TYPE = "application/octet-stream"
MAX_NAME_LENGTH = 255


def guess_mime_type(name: Optional[str]) -> str:
    """Infer a MIME type from a name's extension."""
    if not name:
        return DEFAULT_MIME_TYPE
    ctype, _ = mimetypes.guess_type(name)
    return ctype or DEFAULT_MIME_TYPE


class StorageBase:
    """Base storage engine class with core functionality."""

    def __init__(
        self,
        storage_dir: str,
        event_hub: Optional[StorageEventHub] = None,
        lock_objects: bool = True
    ):
        """
        Initialize storage engine.

        Args:
            storage_dir: Existing directory used as the storage root
            event_hub: Listener registry; a private one is created if omitted
            lock_objects: Serialize writes/deletes per (bucket, object id)

        Raises:
            ValueError: If the storage directory is missing
        """
        if not storage_dir:
            raise ValueError("Storage directory must be provided")

        if not os.path.isdir(storage_dir):
            raise ValueError(f"Storage directory '{storage_dir}' not exists.")

        self.storage_dir = os.path.abspath(storage_dir)
        self.events = event_hub or StorageEventHub()
        self.lock_objects = lock_objects
        self._object_locks = KeyedLock()

    # -------------------------
    # Listener registration
    # -------------------------

    def subscribe(self, listener: StorageListener) -> None:
        """Register a listener for bucket_created/object_written/object_deleted."""
        self.events.subscribe(listener)

    def unsubscribe(self, listener: StorageListener) -> None:
        self.events.unsubscribe(listener)

    def _emit(self, kind: str, bucket: str, object_id: Optional[str] = None, owner_id: Optional[str] = None):
        self.events.emit(StorageEvent(kind=kind, bucket=bucket, object_id=object_id, owner_id=owner_id))

    # -------------------------
    # Validation
    # -------------------------

    def _is_safe_name(self, name: str) -> bool:
        """
        Check that a name is usable as a single path segment.

        Args:
            name: Bucket name or object id

        Returns:
            True if the name is safe, False otherwise
        """
        if not name or not isinstance(name, str):
            return False

        if name in (".", "..") or len(name) > MAX_NAME_LENGTH:
            return False

        # Path separators and null bytes
        if re.search(r"[/\\\x00]", name):
            return False

        return True

    def _validate_bucket_name(self, bucket: str) -> None:
        if not self._is_safe_name(bucket):
            raise ValidationFailure(f"Invalid bucket name {{{bucket}}}.")

    def _validate_object_id(self, object_id: str) -> None:
        # Reserved prefix is kept free for meta and temp entries
        if not self._is_safe_name(object_id) or object_id.startswith((META_PREFIX, ".")):
            raise ValidationFailure(f"Invalid object id {{{object_id}}}.")

    # -------------------------
    # Layout
    # -------------------------

    def _bucket_path(self, bucket: str) -> str:
        return os.path.join(self.storage_dir, bucket)

    def _object_path(self, bucket: str, object_id: str) -> str:
        return os.path.join(self.storage_dir, bucket, object_id)

    def _meta_path(self, bucket: str, object_id: str) -> str:
        return os.path.join(self.storage_dir, bucket, META_PREFIX + object_id)

    def is_meta_entry(self, name: str) -> bool:
        """Whether a bucket directory entry is a meta (or temp) record."""
        return name.startswith(META_PREFIX)

    # -------------------------
    # Ids and fingerprints
    # -------------------------

    def create_object_id(self, bucket: str) -> str:
        """
        Generate an object id from the bucket name, randomness and time.

        Returns:
            32 character hex string
        """
        seed = f"{bucket}/{uuid.uuid4().hex}:{now_ms()}"
        return hashlib.md5(seed.encode("utf-8")).hexdigest()

    def create_etag(self, object_id: str, meta: ObjectMeta) -> str:
        """Fingerprint of an object's id and modification time."""
        return hashlib.md5(f"{object_id}:{meta.modified_at}".encode("utf-8")).hexdigest()

    # -------------------------
    # I/O helpers
    # -------------------------

    async def _run_io(self, func, *args):
        """Run blocking filesystem work off the event loop."""
        return await asyncio.to_thread(func, *args)

    def _write_file_atomic(self, target: str, data: bytes) -> None:
        """
        Write ``data`` to a reserved-prefix temp sibling and move it into place.

        Raises:
            StorageIOError: If the write or rename fails
        """
        directory, name = os.path.split(target)
        temp = os.path.join(directory, f"{META_PREFIX}.{name}.{uuid.uuid4().hex}.tmp")

        try:
            with open(temp, "wb") as f:
                f.write(data)
            os.replace(temp, target)
        except OSError as e:
            try:
                os.remove(temp)
            except FileNotFoundError:
                pass
            raise StorageIOError(f"Cannot write {target}: {e.strerror or e}") from e

    def _object_guard(self, bucket: str, object_id: str):
        """Async context serializing mutations of one object (no-op when disabled)."""
        if not self.lock_objects:
            return nullcontext()
        return self._object_locks.hold((bucket, object_id))
