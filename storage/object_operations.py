"""
Storage object operations module.

This module handles object writes, meta reads and conditional reads
(If-None-Match against the object's ETag).
"""

import os
from typing import Optional, Union

from shared.errors import MetaParseError, NotFoundError, StorageIOError, ValidationFailure
from shared.models.object_meta import ObjectMeta
from shared.models.stored_object import NOT_MODIFIED, NotModified, ObjectLocation, StoredObject

from .base import guess_mime_type
from .events import OBJECT_WRITTEN
from .meta_codec import decode_meta, encode_meta


class ObjectOperationsMixin:
    """Mixin class for object read/write functionality."""

    def _read_meta(self, bucket: str, object_id: str) -> ObjectMeta:
        meta_path = self._meta_path(bucket, object_id)
        try:
            with open(meta_path, "rb") as f:
                data = f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.") from e
        except OSError as e:
            raise StorageIOError(
                f"Cannot read object meta data for {{{bucket}/{object_id}}}: {e.strerror or e}"
            ) from e

        return decode_meta(data)

    def _read_content(self, bucket: str, object_id: str) -> bytes:
        try:
            with open(self._object_path(bucket, object_id), "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.") from e
        except OSError as e:
            raise StorageIOError(f"Cannot read object {{{bucket}/{object_id}}}: {e.strerror or e}") from e

    def _next_modified_at(self, bucket: str, object_id: str, meta: ObjectMeta) -> ObjectMeta:
        """
        Keep ``modified_at`` strictly increasing across rewrites of one id.

        Two writes within the same millisecond would otherwise share an ETag.
        """
        try:
            previous = self._read_meta(bucket, object_id)
        except (NotFoundError, MetaParseError, StorageIOError):
            return meta

        if meta.modified_at <= previous.modified_at:
            meta.modified_at = previous.modified_at + 1
        return meta

    def _store_object(self, bucket: str, object_id: str, content: bytes, meta: ObjectMeta) -> None:
        # Content first; a failed meta write leaves content without meta,
        # which reads treat as a nonexistent object.
        self._write_file_atomic(self._object_path(bucket, object_id), content)
        meta = self._next_modified_at(bucket, object_id, meta)
        self._write_file_atomic(self._meta_path(bucket, object_id), encode_meta(meta))

    async def write_object(
        self,
        bucket: str,
        object_id: Optional[str],
        mime_type: Optional[str],
        content: Union[bytes, bytearray, memoryview, str],
        owner_id: str
    ) -> str:
        """
        Write an object's content and meta record.

        Args:
            bucket: Bucket name; created if missing
            object_id: Stable object id, or None to generate one
            mime_type: MIME type, or None to infer it from the object id
            content: Object content as bytes-like or str (stored UTF-8 encoded)
            owner_id: Client id performing the write

        Returns:
            The object id written

        Raises:
            ValidationFailure: If content/owner are missing, content is not
                bytes-like or str, or names are unsafe
            StorageIOError: If the content or meta write fails
        """
        if content is None:
            raise ValidationFailure("Missing object content.")
        if not owner_id:
            raise ValidationFailure("Owner id is required.")

        if isinstance(content, str):
            content = content.encode("utf-8")
        elif isinstance(content, (bytes, bytearray, memoryview)):
            content = bytes(content)
        else:
            raise ValidationFailure(f"Unsupported object content type {type(content).__name__}.")

        self._validate_bucket_name(bucket)
        if not object_id:
            object_id = self.create_object_id(bucket)
        self._validate_object_id(object_id)

        await self.ensure_bucket(bucket)

        meta = ObjectMeta.create(
            mime_type=mime_type or guess_mime_type(object_id),
            owner_id=owner_id
        )

        async with self._object_guard(bucket, object_id):
            await self._run_io(self._store_object, bucket, object_id, content, meta)

        self._emit(OBJECT_WRITTEN, bucket, object_id, owner_id)
        return object_id

    async def get_meta(self, bucket: str, object_id: str) -> ObjectMeta:
        """
        Read an object's meta record.

        Raises:
            ValidationFailure: If names are unsafe
            NotFoundError: If the meta record is absent
            MetaParseError: If the meta record is corrupt
            StorageIOError: If the meta record cannot be read
        """
        self._validate_bucket_name(bucket)
        self._validate_object_id(object_id)
        return await self._run_io(self._read_meta, bucket, object_id)

    async def get_object_filename(
        self,
        bucket: str,
        object_id: str,
        if_none_match: Optional[str] = None
    ) -> Union[ObjectLocation, NotModified]:
        """
        Resolve an object for streaming by the caller.

        The content file is only checked, not opened. A concurrent delete can
        remove it before the caller opens it, so callers treat a missing file
        at open time as NotFound.

        Args:
            bucket: Bucket name
            object_id: Object id
            if_none_match: Cache validator presented by the client

        Returns:
            NOT_MODIFIED when the validator equals the current ETag, otherwise
            an ObjectLocation with the content filename, meta and ETag

        Raises:
            NotFoundError: If meta or content is absent
        """
        meta = await self.get_meta(bucket, object_id)
        etag = self.create_etag(object_id, meta)

        if if_none_match and if_none_match == etag:
            return NOT_MODIFIED

        filename = self._object_path(bucket, object_id)
        if not await self._run_io(os.path.isfile, filename):
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.")

        return ObjectLocation(filename=filename, meta=meta, etag=etag)

    async def get_object(
        self,
        bucket: str,
        object_id: str,
        if_none_match: Optional[str] = None
    ) -> Union[StoredObject, NotModified]:
        """
        Read an object's meta and content.

        Same conditional semantics as get_object_filename; content is only
        read when the validator does not match.

        Raises:
            NotFoundError: If meta or content is absent
            MetaParseError: If the meta record is corrupt
            StorageIOError: If reading fails
        """
        meta = await self.get_meta(bucket, object_id)
        etag = self.create_etag(object_id, meta)

        if if_none_match and if_none_match == etag:
            return NOT_MODIFIED

        content = await self._run_io(self._read_content, bucket, object_id)
        return StoredObject(meta=meta, content=content, etag=etag)
