"""
Opaque paging cursor for list_recent.

Encodes the (last_modified, key) position of the last returned record.
The next page starts strictly after that position, so a record written
while a client pages does not shift the remaining pages.

Dependencies: base64, json (stdlib)
System role: Stable pagination for the job store
"""

import base64
import binascii
import json
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class ListPosition:
    """Sort position: newest first, then key ascending."""

    neg_timestamp: float
    key: str

    @classmethod
    def of(cls, timestamp: float, key: str) -> "ListPosition":
        return cls(neg_timestamp=-timestamp, key=key)


def encode_cursor(position: ListPosition) -> str:
    payload = json.dumps({"t": -position.neg_timestamp, "k": position.key}, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> ListPosition:
    """
    Decode a cursor produced by encode_cursor.

    Raises:
        ValueError: If the cursor is not a valid position
    """
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        return ListPosition.of(float(payload["t"]), str(payload["k"]))
    except (binascii.Error, UnicodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid cursor: {cursor!r}") from e
