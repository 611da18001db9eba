"""
Storage bucket operations module.

This module handles lazy bucket materialization and the bucket/object
listings.
"""

import os
from typing import List

from shared.errors import NotFoundError, StorageIOError

from .events import BUCKET_CREATED


class BucketOperationsMixin:
    """Mixin class for bucket operations functionality."""

    def _make_bucket_dir(self, bucket: str) -> bool:
        """
        Create the bucket directory.

        Returns:
            True if this call created it, False if it already existed

        Raises:
            StorageIOError: If creation fails or the name is taken by a file
        """
        bucket_dir = self._bucket_path(bucket)
        try:
            os.mkdir(bucket_dir)
            return True
        except FileExistsError:
            if os.path.isdir(bucket_dir):
                return False
            raise StorageIOError(f"Bucket path {{{bucket}}} exists and is not a directory.")
        except OSError as e:
            raise StorageIOError(f"Cannot create bucket {{{bucket}}}: {e.strerror or e}") from e

    async def ensure_bucket(self, bucket: str) -> None:
        """
        Idempotently materialize a bucket.

        Concurrent callers all succeed; only the caller whose mkdir actually
        created the directory emits ``bucket_created``.

        Args:
            bucket: Bucket name

        Raises:
            ValidationFailure: If the bucket name is unsafe
            StorageIOError: If the directory cannot be created
        """
        self._validate_bucket_name(bucket)

        created = await self._run_io(self._make_bucket_dir, bucket)
        if created:
            self._emit(BUCKET_CREATED, bucket)

    async def bucket_exists(self, bucket: str) -> bool:
        self._validate_bucket_name(bucket)
        return await self._run_io(os.path.isdir, self._bucket_path(bucket))

    def _scan_buckets(self) -> List[str]:
        try:
            with os.scandir(self.storage_dir) as entries:
                return sorted(entry.name for entry in entries if entry.is_dir())
        except OSError as e:
            raise StorageIOError(f"Cannot read root storage dir: {e.strerror or e}") from e

    async def list_buckets(self) -> List[str]:
        """
        List bucket names under the storage root.

        Raises:
            StorageIOError: If the root cannot be read
        """
        return await self._run_io(self._scan_buckets)

    def _scan_objects(self, bucket: str) -> List[str]:
        bucket_dir = self._bucket_path(bucket)
        if not os.path.isdir(bucket_dir):
            raise NotFoundError(f"Bucket {{{bucket}}} not found.")

        try:
            with os.scandir(bucket_dir) as entries:
                return sorted(
                    entry.name for entry in entries
                    if entry.is_file() and not self.is_meta_entry(entry.name)
                )
        except FileNotFoundError as e:
            raise NotFoundError(f"Bucket {{{bucket}}} not found.") from e
        except OSError as e:
            raise StorageIOError(f"Cannot read bucket {{{bucket}}}: {e.strerror or e}") from e

    async def list_objects(self, bucket: str) -> List[str]:
        """
        List object ids in a bucket, excluding meta and temp entries.

        Args:
            bucket: Bucket name

        Returns:
            Sorted object ids

        Raises:
            ValidationFailure: If the bucket name is unsafe
            NotFoundError: If the bucket does not exist
            StorageIOError: If the bucket cannot be read
        """
        self._validate_bucket_name(bucket)
        return await self._run_io(self._scan_objects, bucket)
