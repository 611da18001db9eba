"""
Meta record codec.

Serializes ObjectMeta to compact JSON bytes and parses it back. Parse
failures raise MetaParseError so callers can tell a corrupt record apart
from a missing one.
"""

import json

from shared.errors import MetaParseError
from shared.models.object_meta import ObjectMeta


def encode_meta(meta: ObjectMeta) -> bytes:
    """Serialize a meta record."""
    return json.dumps(meta.to_dict(), separators=(",", ":")).encode("utf-8")


def decode_meta(data: bytes) -> ObjectMeta:
    """
    Parse a persisted meta record.

    Args:
        data: Raw bytes read from the meta entry

    Returns:
        Parsed ObjectMeta

    Raises:
        MetaParseError: If the record is not valid UTF-8 JSON with the
            expected keys and types
    """
    try:
        record = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MetaParseError(f"Corrupt meta record: {e}")

    if not isinstance(record, dict):
        raise MetaParseError("Corrupt meta record: expected a JSON object")

    missing = [key for key in ("mime", "modified", "user") if key not in record]
    if missing:
        raise MetaParseError(f"Corrupt meta record: missing fields {missing}")

    mime_type = record["mime"]
    modified_at = record["modified"]
    owner_id = record["user"]

    if not isinstance(mime_type, str):
        raise MetaParseError("Corrupt meta record: 'mime' must be a string")
    # bool is an int subclass
    if not isinstance(modified_at, int) or isinstance(modified_at, bool):
        raise MetaParseError("Corrupt meta record: 'modified' must be an integer")
    if not isinstance(owner_id, str):
        raise MetaParseError("Corrupt meta record: 'user' must be a string")

    return ObjectMeta(mime_type=mime_type, modified_at=modified_at, owner_id=owner_id)
