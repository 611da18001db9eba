"""
Read results returned by the storage engine.
"""

from typing import Any, Dict

from .object_meta import ObjectMeta


class NotModified:
    """Result of a conditional read whose validator matched the current ETag."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_MODIFIED"


NOT_MODIFIED = NotModified()


class ObjectLocation:
    """
    Descriptor of an object the caller streams from disk itself.

    Attributes:
        filename: Absolute path of the content entry
        meta: Object meta record
        etag: Current fingerprint
    """

    def __init__(self, filename: str, meta: ObjectMeta, etag: str):
        self.filename = filename
        self.meta = meta
        self.etag = etag

    def to_dict(self) -> Dict[str, Any]:
        return {"filename": self.filename, "meta": self.meta.to_dict(), "etag": self.etag}

    def __repr__(self) -> str:
        return f"<ObjectLocation(filename={self.filename}, etag={self.etag})>"


class StoredObject:
    """
    Fully loaded object.

    Attributes:
        meta: Object meta record
        content: Content bytes
        etag: Current fingerprint
    """

    def __init__(self, meta: ObjectMeta, content: bytes, etag: str):
        self.meta = meta
        self.content = content
        self.etag = etag

    def __repr__(self) -> str:
        return f"<StoredObject(size={len(self.content)}, etag={self.etag})>"
