"""
Storage Package

This package provides the directory-backed object storage engine for
META Storage and the HTTP service in front of it.

Main Classes:
    Storage: Complete storage engine with all functionality
    StorageBase: Base class with initialization and utilities

Mixins:
    BucketOperationsMixin: Bucket creation and listings
    ObjectOperationsMixin: Object write/meta/conditional reads
    ObjectManagementMixin: Object deletion

Notifications:
    StorageEvent, StorageEventHub
"""

from .storage import Storage
from .base import META_PREFIX, StorageBase, guess_mime_type
from .bucket_operations import BucketOperationsMixin
from .object_operations import ObjectOperationsMixin
from .object_management import ObjectManagementMixin
from .events import (
    BUCKET_CREATED,
    OBJECT_DELETED,
    OBJECT_WRITTEN,
    StorageEvent,
    StorageEventHub,
)
from .meta_codec import decode_meta, encode_meta

__all__ = [
    "Storage",
    "StorageBase",
    "BucketOperationsMixin",
    "ObjectOperationsMixin",
    "ObjectManagementMixin",
    "StorageEvent",
    "StorageEventHub",
    "BUCKET_CREATED",
    "OBJECT_WRITTEN",
    "OBJECT_DELETED",
    "META_PREFIX",
    "guess_mime_type",
    "encode_meta",
    "decode_meta"
]

__version__ = "1.0.0"
