"""
Tag codec.

Converts between an in-memory tag set and the raw delimited bytes stored
in the extended attribute.
"""

from typing import FrozenSet, Iterable, Optional

from .errors import EncodingViolation

DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8"


class TagCodec:
    """Encodes and decodes tag sets for a given delimiter."""

    def __init__(self, delimiter: str = DEFAULT_DELIMITER, encoding: str = DEFAULT_ENCODING):
        """
        Initialize codec.

        Args:
            delimiter: Single character separating tags
            encoding: Text encoding of the stored value

        Raises:
            ValueError: If the delimiter does not encode to exactly one byte
        """
        if len(delimiter.encode(encoding)) != 1:
            raise ValueError(f"Delimiter must be a single byte, got {delimiter!r}")
        self.delimiter = delimiter
        self.encoding = encoding

    def validate(self, tags: Iterable[str]) -> FrozenSet[str]:
        """
        Check caller-supplied tags before they reach storage.

        Raises:
            EncodingViolation: If a tag is empty, contains the delimiter or
                cannot be encoded
        """
        checked = set()
        for tag in tags:
            if not tag:
                raise EncodingViolation("Empty tag is not allowed", tag)
            if self.delimiter in tag:
                raise EncodingViolation(
                    f"Tag {tag!r} contains the delimiter {self.delimiter!r}", tag
                )
            try:
                tag.encode(self.encoding, errors="surrogateescape")
            except UnicodeEncodeError as e:
                raise EncodingViolation(
                    f"Tag {tag!r} cannot be stored as {self.encoding}: {e.reason}", tag
                ) from e
            checked.add(tag)
        return frozenset(checked)

    def encode(self, tags: Iterable[str]) -> bytes:
        """Join tags with the delimiter; empty set gives b""."""
        # Sorted so identical sets always produce identical bytes
        joined = self.delimiter.join(sorted(set(tags)))
        return joined.encode(self.encoding, errors="surrogateescape")

    def decode(self, raw: Optional[bytes]) -> FrozenSet[str]:
        """Split a stored value back into a tag set. Never raises."""
        if not raw:
            return frozenset()
        text = raw.decode(self.encoding, errors="surrogateescape")
        return frozenset(token for token in text.split(self.delimiter) if token)
