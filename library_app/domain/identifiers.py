"""
Identifier generation for catalog records.

Books and users are keyed by UUIDv7 (RFC 9562): the first 48 bits carry the
Unix time in milliseconds, so records created later sort after earlier ones
and SQLite primary-key inserts stay roughly sequential.
"""

import os
import re
import time
from uuid import UUID

_VERSION_7 = 0x7
_RFC_4122_VARIANT = 0b10


def new_identifier() -> UUID:
    """
    Generate a time-ordered UUIDv7.

    Layout (most significant bit first):
        48 bits  unix_ts_ms
         4 bits  version (0111)
        12 bits  rand_a
         2 bits  variant (10)
        62 bits  rand_b

    Example:
        >>> new_identifier().version
        7
    """
    timestamp_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")

    rand_a = rand >> 68 & 0xFFF
    rand_b = rand & ((1 << 62) - 1)

    value = (timestamp_ms & ((1 << 48) - 1)) << 80
    value |= _VERSION_7 << 76
    value |= rand_a << 64
    value |= _RFC_4122_VARIANT << 62
    value |= rand_b

    return UUID(int=value)


_CANONICAL_UUID = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class UuidIdentifierFormat:
    """
    IdentifierFormat accepting canonical hyphenated UUID strings.

    Braced, URN and hyphen-less spellings that uuid.UUID() would tolerate
    are rejected so that one record has exactly one valid spelling.
    """

    def is_valid(self, raw: str) -> bool:
        return isinstance(raw, str) and bool(_CANONICAL_UUID.fullmatch(raw))

    def parse(self, raw: str) -> UUID:
        if not self.is_valid(raw):
            raise ValueError(f"Malformed identifier: '{raw}'")
        return UUID(raw)
