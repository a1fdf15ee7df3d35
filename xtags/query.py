"""
Client for the tag query daemon.

The daemon is a separate process that indexes tags across the filesystem.
Requests are short text messages prefixed with an operation code; the reply
is plain text read until the daemon closes the connection.
"""

import logging
import socket
from pathlib import Path
from typing import Iterable, Union

from .errors import QueryDaemonError

logger = logging.getLogger(__name__)

CODE_ENTRIES = "0x0"
CODE_TAGS = "0x1"
CODE_RENAME_TAG = "0x2"


def build_query_request(terms: Iterable[str]) -> str:
    """Request for paths matching a query such as ``bob AND fred OR max``."""
    return CODE_ENTRIES + "".join(f"{term} " for term in terms)


def build_list_request() -> str:
    """Request for every distinct tag the daemon knows."""
    return CODE_TAGS


def build_rename_request(old: str, new: str) -> str:
    """Request to rename a tag everywhere."""
    return f"{CODE_RENAME_TAG}{old} {new}"


class QueryClient:
    """Sends requests to the query daemon over a Unix socket."""

    def __init__(self, socket_path: Union[str, Path], timeout: float = 10.0):
        self.socket_path = Path(socket_path)
        self.timeout = timeout

    def send(self, request: str) -> str:
        """
        Send one request and return the full reply.

        Raises:
            QueryDaemonError: If the daemon is unreachable or the exchange fails
        """
        logger.debug("Query daemon request %r to %s", request, self.socket_path)
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self.timeout)
                sock.connect(str(self.socket_path))
                sock.sendall(request.encode("utf-8"))
                sock.shutdown(socket.SHUT_WR)

                chunks = []
                for chunk in iter(lambda: sock.recv(8192), b""):
                    chunks.append(chunk)
        except OSError as e:
            raise QueryDaemonError(
                f"Query daemon at {self.socket_path} failed: {e.strerror or e}"
            ) from e

        return b"".join(chunks).decode("utf-8", errors="replace")

    def list_tags(self) -> str:
        return self.send(build_list_request())

    def query(self, terms: Iterable[str]) -> str:
        return self.send(build_query_request(terms))

    def rename(self, old: str, new: str) -> str:
        return self.send(build_rename_request(old, new))
