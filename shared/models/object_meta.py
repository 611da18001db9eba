"""
Object meta record model.

Descriptive record stored alongside every object's content.
"""

import time
from typing import Any, Dict, Optional


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class ObjectMeta:
    """
    Meta record for a stored object.

    Attributes:
        mime_type: MIME type served with the content
        modified_at: Last write time in milliseconds since the epoch
        owner_id: Client id that performed the last write
    """

    __slots__ = ("mime_type", "modified_at", "owner_id")

    def __init__(self, mime_type: str, modified_at: int, owner_id: str):
        self.mime_type = mime_type
        self.modified_at = modified_at
        self.owner_id = owner_id

    @classmethod
    def create(cls, mime_type: str, owner_id: str, modified_at: Optional[int] = None) -> 'ObjectMeta':
        """Build a meta record stamped with the current time."""
        return cls(
            mime_type=mime_type,
            modified_at=modified_at if modified_at is not None else now_ms(),
            owner_id=owner_id
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the wire/disk dictionary.

        Keys match the records written by earlier deployments.
        """
        return {
            "mime": self.mime_type,
            "modified": self.modified_at,
            "user": self.owner_id
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectMeta):
            return NotImplemented
        return (
            self.mime_type == other.mime_type
            and self.modified_at == other.modified_at
            and self.owner_id == other.owner_id
        )

    def __hash__(self) -> int:
        return hash((self.mime_type, self.modified_at, self.owner_id))

    def __repr__(self) -> str:
        return f"<ObjectMeta(mime_type={self.mime_type}, modified_at={self.modified_at}, owner_id={self.owner_id})>"
