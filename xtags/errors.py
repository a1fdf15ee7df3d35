"""
Error types for tag operations.

Every per-path failure is one of these; the applier collects them instead
of raising so one bad path never stops its siblings.
"""

from pathlib import Path
from typing import Optional, Union


class TagError(Exception):
    """Base class for all xtags errors."""

    kind = "TagError"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class PathNotFound(TagError):
    """Target path does not exist or cannot be stat'd."""

    kind = "NotFound"


class AttributeIOError(TagError):
    """Attribute read, write or remove failed at the host level."""

    kind = "IOError"

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[OSError] = None,
    ):
        super().__init__(message, path)
        self.cause = cause


class EncodingViolation(TagError, ValueError):
    """A caller-supplied tag is empty or contains the delimiter."""

    kind = "EncodingViolation"

    def __init__(self, message: str, tag: str):
        super().__init__(message)
        self.tag = tag


class QueryDaemonError(TagError):
    """The tag query daemon could not be reached or hung up."""

    kind = "QueryDaemon"
