"""
Shared fixtures for xtags tests.
"""

import pytest
import xattr

from xtags.store import MemoryStore


@pytest.fixture
def memory_store():
    """Fresh in-memory attribute store."""
    return MemoryStore()


@pytest.fixture
def tree(tmp_path):
    """
    Directory tree used by recursion tests:

        D/
          a
          sub/
            b
    """
    root = tmp_path / "D"
    (root / "sub").mkdir(parents=True)
    (root / "a").write_text("a")
    (root / "sub" / "b").write_text("b")
    return root


@pytest.fixture
def xattr_dir(tmp_path):
    """tmp_path, skipping the test if it does not support user xattrs."""
    probe = tmp_path / ".probe"
    probe.touch()
    try:
        xattr.setxattr(str(probe), "user.xtags_probe", b"1")
    except OSError:
        pytest.skip("user extended attributes not supported on tmp_path")
    probe.unlink()
    return tmp_path
