"""
Storage object management module.

This module handles object deletion. Content is removed before the meta
record; both unlinks run under the object's lock.
"""

import os

from shared.errors import NotFoundError, StorageIOError

from .events import OBJECT_DELETED


class ObjectManagementMixin:
    """Mixin class for object deletion functionality."""

    def _remove_object(self, bucket: str, object_id: str) -> None:
        object_path = self._object_path(bucket, object_id)

        if not os.path.isfile(object_path):
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.")

        try:
            os.remove(object_path)
        except FileNotFoundError as e:
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.") from e
        except OSError as e:
            raise StorageIOError(f"Cannot delete object {{{bucket}/{object_id}}}: {e.strerror or e}") from e

        try:
            os.remove(self._meta_path(bucket, object_id))
        except FileNotFoundError:
            # Orphaned content from an earlier failed write; nothing left to remove
            pass
        except OSError as e:
            raise StorageIOError(
                f"Cannot delete meta data for object {{{bucket}/{object_id}}}: {e.strerror or e}"
            ) from e

    async def delete_object(self, bucket: str, object_id: str, owner_id: str) -> None:
        """
        Delete an object's content and meta record.

        Args:
            bucket: Bucket name
            object_id: Object id
            owner_id: Client id performing the delete (reported in the event)

        Raises:
            ValidationFailure: If names are unsafe
            NotFoundError: If the content entry does not exist
            StorageIOError: If an unlink fails; when the meta unlink fails the
                content is already gone and a stale meta record remains
        """
        self._validate_bucket_name(bucket)
        self._validate_object_id(object_id)

        async with self._object_guard(bucket, object_id):
            await self._run_io(self._remove_object, bucket, object_id)

        self._emit(OBJECT_DELETED, bucket, object_id, owner_id)
