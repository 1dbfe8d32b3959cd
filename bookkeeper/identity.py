"""
Compact 128-bit identifiers for audit entries.

A ShortId is a random UUID rendered as 22 URL-safe base64 characters
(padding dropped). The longer UUID forms are accepted on input and decode
to the same value, but only the compact form is ever produced.

The compact form encodes `UUID.bytes_le`, so identifiers written by other
implementations of the same scheme parse to the same value here.
"""

from __future__ import annotations

import base64
import binascii
import re
import uuid
from dataclasses import dataclass


_COMPACT_LENGTH = 22
_COMPACT_RE = re.compile(r"^[A-Za-z0-9_-]{22}$")
_HYPHENATED = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_LONG_RE = re.compile(
    rf"^(?:[0-9a-f]{{32}}|{_HYPHENATED}|\{{{_HYPHENATED}\}}|urn:uuid:{_HYPHENATED})$",
    re.IGNORECASE,
)


class ShortIdFormatError(ValueError):
    """Raised when text is not a recognized identifier encoding."""


def _encode(value: uuid.UUID) -> str:
    return base64.urlsafe_b64encode(value.bytes_le).decode("ascii")[:_COMPACT_LENGTH]


def _decode(text: str) -> uuid.UUID:
    if len(text) == _COMPACT_LENGTH:
        if not _COMPACT_RE.match(text):
            raise ShortIdFormatError(f"Invalid compact identifier: {text!r}")
        try:
            raw = base64.urlsafe_b64decode(text + "==")
        except (binascii.Error, ValueError) as exc:
            raise ShortIdFormatError(f"Invalid compact identifier: {text!r}") from exc
        value = uuid.UUID(bytes_le=raw)
        # The last character carries two padding bits that must be zero.
        if _encode(value) != text:
            raise ShortIdFormatError(f"Non-canonical compact identifier: {text!r}")
        return value

    if not _LONG_RE.match(text):
        raise ShortIdFormatError(f"Unrecognized identifier format: {text!r}")
    return uuid.UUID(text)


@dataclass(frozen=True)
class ShortId:
    """
    A 128-bit identifier with a 22-character textual form.

    Equality and hashing use the underlying UUID only, so a ShortId parsed
    from the compact form equals one parsed from the hyphenated form.
    """

    value: uuid.UUID

    @classmethod
    def generate(cls) -> "ShortId":
        """Create a fresh random identifier."""
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls, text: str | None) -> "ShortId":
        """
        Parse a compact or UUID-form identifier.

        Raises:
            ShortIdFormatError: text is None, blank, or not a recognized encoding
        """
        if text is None:
            raise ShortIdFormatError("Identifier text cannot be None")
        stripped = text.strip()
        if not stripped:
            raise ShortIdFormatError("Identifier text cannot be empty or whitespace")
        return cls(_decode(stripped))

    @classmethod
    def try_parse(cls, text: str | None) -> tuple["ShortId", bool]:
        """Parse without raising; returns (EMPTY, False) when text is invalid."""
        try:
            return cls.parse(text), True
        except (ShortIdFormatError, TypeError, AttributeError):
            return EMPTY, False

    def to_text(self) -> str:
        return _encode(self.value)

    def to_binary(self) -> bytes:
        """The 16 bytes behind the compact form."""
        return self.value.bytes_le

    def to_uuid(self) -> uuid.UUID:
        return self.value

    def is_empty(self) -> bool:
        return self.value.int == 0

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"ShortId({self.to_text()!r})"


EMPTY = ShortId(uuid.UUID(int=0))
EMPTY_ENCODED = "AAAAAAAAAAAAAAAAAAAAAA"
