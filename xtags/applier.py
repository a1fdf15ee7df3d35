"""
Recursive tag applier.

Applies get/set/delete to a list of root paths and, optionally, to every
entry below each directory root. Each path is read, combined with the
requested tags, and written back independently; failures are collected per
path and never stop the rest of the walk.
"""

import logging
import stat
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Generator, Iterable, List, Optional, Tuple, Union

from .algebra import difference, needs_removal, union
from .codec import TagCodec
from .errors import AttributeIOError, PathNotFound, TagError
from .store import AttributeStore, path_lock

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Operation(str, Enum):
    """Tag operation applied to every visited path."""

    GET = "get"
    SET = "set"
    DELETE = "delete"


@dataclass
class PathResult:
    """Outcome of one operation on one path."""

    path: Path
    operation: Operation
    tags: FrozenSet[str] = frozenset()
    error: Optional[TagError] = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class TagApplier:
    """Walks paths and applies tag operations through a store and codec."""

    def __init__(
        self,
        store: AttributeStore,
        codec: Optional[TagCodec] = None,
        follow_symlinks: bool = False,
        lock: bool = False,
    ):
        """
        Initialize applier.

        Args:
            store: Attribute store holding the raw tag values
            codec: Tag codec (default delimiter if None)
            follow_symlinks: Tag symlink targets found while recursing.
                Symlinked directories are never descended into.
            lock: Hold an advisory lock around each read-modify-write
        """
        self.store = store
        self.codec = codec or TagCodec()
        self.follow_symlinks = follow_symlinks
        self.lock = lock

    def apply(
        self,
        paths: Iterable[PathLike],
        operation: Operation,
        tags: Iterable[str] = (),
        recursive: bool = False,
    ) -> List[PathResult]:
        """
        Apply an operation to each path, in order.

        Args:
            paths: Root paths, processed sequentially
            operation: GET, SET or DELETE
            tags: Tags to add or remove (ignored for GET)
            recursive: Also visit every entry below directory roots

        Returns:
            One PathResult per visited path, roots and their subtrees in
            pre-order

        Raises:
            EncodingViolation: If a tag is empty, contains the delimiter or
                cannot be encoded
        """
        return list(self.iter_apply(paths, operation, tags, recursive))

    def iter_apply(
        self,
        paths: Iterable[PathLike],
        operation: Operation,
        tags: Iterable[str] = (),
        recursive: bool = False,
    ) -> Generator[PathResult, None, None]:
        """Generator form of apply(); results are yielded as paths are visited."""
        wanted = frozenset() if operation is Operation.GET else self.codec.validate(tags)
        for root in paths:
            yield from self._walk(Path(root), operation, wanted, recursive)

    def get(self, paths: Iterable[PathLike], recursive: bool = False) -> List[PathResult]:
        return self.apply(paths, Operation.GET, recursive=recursive)

    def set(
        self, paths: Iterable[PathLike], tags: Iterable[str], recursive: bool = False
    ) -> List[PathResult]:
        return self.apply(paths, Operation.SET, tags, recursive)

    def delete(
        self, paths: Iterable[PathLike], tags: Iterable[str], recursive: bool = False
    ) -> List[PathResult]:
        return self.apply(paths, Operation.DELETE, tags, recursive)

    def iter_tag_sets(
        self, paths: Iterable[PathLike], recursive: bool = True
    ) -> Generator[Tuple[Path, FrozenSet[str]], None, None]:
        """
        Yield (path, tags) for every readable, tagged path.

        Feed for external indexers; untagged and failing paths are skipped.
        """
        for result in self.iter_apply(paths, Operation.GET, recursive=recursive):
            if result.ok and result.tags:
                yield result.path, result.tags

    def _walk(
        self,
        root: Path,
        operation: Operation,
        wanted: FrozenSet[str],
        recursive: bool,
    ) -> Generator[PathResult, None, None]:
        """Depth-first pre-order walk using an explicit stack."""
        stack: List[Tuple[Path, bool]] = [(root, True)]

        while stack:
            path, is_root = stack.pop()

            # Roots are taken as given; links met while recursing follow policy
            is_link = not is_root and path.is_symlink()
            if is_link and not self.follow_symlinks:
                logger.debug("Skipping symlink %s", path)
                continue

            try:
                mode = path.stat().st_mode
            except OSError as e:
                error = PathNotFound(f"Cannot access {path}: {e.strerror or e}", path)
                logger.debug("%s", error)
                yield PathResult(path, operation, error=error)
                continue

            yield self._apply_one(path, operation, wanted)

            if not recursive or is_link or not stat.S_ISDIR(mode):
                continue

            try:
                children = sorted(path.iterdir())
            except OSError as e:
                error = AttributeIOError(
                    f"Cannot list directory {path}: {e.strerror or e}", path, e
                )
                logger.debug("%s", error)
                yield PathResult(path, operation, error=error)
                continue

            # Reversed so the first child is popped first
            stack.extend((child, False) for child in reversed(children))

    def _apply_one(self, path: Path, operation: Operation, wanted: FrozenSet[str]) -> PathResult:
        """Read, combine and write back the tags of a single path."""
        try:
            with path_lock(path) if self.lock else nullcontext():
                raw = self.store.read(path)
                current = self.codec.decode(raw)

                if operation is Operation.GET:
                    return PathResult(path, operation, current)

                if operation is Operation.SET:
                    updated = union(current, wanted)
                else:
                    updated = difference(current, wanted)

                if needs_removal(updated):
                    if raw is None:
                        logger.debug("No tags on %s, nothing to %s", path, operation.value)
                        return PathResult(path, operation, updated)
                    self.store.remove(path)
                    logger.info("Removed all tags from %s", path)
                    return PathResult(path, operation, updated, changed=True)

                if updated == current:
                    logger.debug("Tags on %s already up to date", path)
                    return PathResult(path, operation, updated)

                self.store.write(path, self.codec.encode(updated))
                logger.info("Tags on %s: %s", path, ", ".join(sorted(updated)))
                return PathResult(path, operation, updated, changed=True)

        except TagError as e:
            if e.path is None:
                e.path = path
            logger.debug("%s", e)
            return PathResult(path, operation, error=e)
