"""
Attribute store adapters.

A store reads, writes and removes one named extended attribute on one path
at a time. It never touches file content or any other metadata.
"""

import errno
import fcntl
import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator, Optional, Union

import xattr

from .errors import AttributeIOError, PathNotFound

logger = logging.getLogger(__name__)

DEFAULT_ATTR_NAME = "user.tags"

PathLike = Union[str, Path]

# Linux reports a missing attribute as ENODATA, BSD/macOS as ENOATTR
_MISSING_ATTR_ERRNOS = {
    code for code in (getattr(errno, "ENODATA", None), getattr(errno, "ENOATTR", None))
    if code is not None
}
_MISSING_PATH_ERRNOS = {errno.ENOENT, errno.ENOTDIR}


def _translate(err: OSError, path: PathLike, action: str) -> Exception:
    """Map an OSError from the host onto the xtags error kinds."""
    if err.errno in _MISSING_PATH_ERRNOS:
        return PathNotFound(f"No such file or directory: {path}", path)
    return AttributeIOError(f"Cannot {action} tags on {path}: {err.strerror or err}", path, err)


class AttributeStore(ABC):
    """Abstract single-attribute store."""

    def __init__(self, attr_name: str = DEFAULT_ATTR_NAME):
        self.attr_name = attr_name

    @abstractmethod
    def read(self, path: PathLike) -> Optional[bytes]:
        """Return the raw value, or None if the attribute is absent."""
        pass

    @abstractmethod
    def write(self, path: PathLike, value: bytes) -> None:
        """Create or replace the attribute with exactly `value`."""
        pass

    @abstractmethod
    def remove(self, path: PathLike) -> None:
        """Delete the attribute; absent attribute is a no-op."""
        pass


class XattrStore(AttributeStore):
    """Store backed by the host's extended attributes."""

    def read(self, path: PathLike) -> Optional[bytes]:
        try:
            return xattr.getxattr(str(path), self.attr_name)
        except OSError as e:
            if e.errno in _MISSING_ATTR_ERRNOS:
                return None
            raise _translate(e, path, "read") from e

    def write(self, path: PathLike, value: bytes) -> None:
        try:
            xattr.setxattr(str(path), self.attr_name, value)
        except OSError as e:
            raise _translate(e, path, "write") from e

    def remove(self, path: PathLike) -> None:
        try:
            xattr.removexattr(str(path), self.attr_name)
        except OSError as e:
            if e.errno in _MISSING_ATTR_ERRNOS:
                logger.debug("No %s attribute to remove on %s", self.attr_name, path)
                return
            raise _translate(e, path, "remove") from e


class MemoryStore(AttributeStore):
    """
    In-process store for tests and embedding.

    Values live in a dict keyed by absolute path; the path itself must
    still exist on disk so missing targets behave like XattrStore.
    """

    def __init__(self, attr_name: str = DEFAULT_ATTR_NAME):
        super().__init__(attr_name)
        self.values: Dict[str, bytes] = {}

    def _key(self, path: PathLike) -> str:
        path = Path(path)
        if not path.exists():
            raise PathNotFound(f"No such file or directory: {path}", path)
        return str(path.resolve())

    def read(self, path: PathLike) -> Optional[bytes]:
        return self.values.get(self._key(path))

    def write(self, path: PathLike, value: bytes) -> None:
        self.values[self._key(path)] = bytes(value)

    def remove(self, path: PathLike) -> None:
        self.values.pop(self._key(path), None)


@contextmanager
def path_lock(path: PathLike) -> Generator[None, None, None]:
    """
    Hold an exclusive advisory lock on a file or directory.

    Only serializes xtags processes that also take the lock; other writers
    are not blocked.
    """
    # O_NONBLOCK so opening a FIFO does not wait for a writer
    try:
        fd = os.open(str(path), os.O_RDONLY | os.O_NONBLOCK)
    except OSError as e:
        raise _translate(e, path, "lock") from e
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError as e:
            raise _translate(e, path, "lock") from e
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
