"""Protocol definitions for Badware.

These protocols keep the dev-solo orchestration independent of the operating
system: the port reclaimer only talks to a ListenerProbe, so the platform
specific process listing can be swapped (or faked in tests) without touching
the retry logic.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import ContentEntry


class ListenerQueryError(Exception):
    """Raised by a ListenerProbe when the OS cannot be asked about a port."""


@runtime_checkable
class ListenerProbe(Protocol):
    """Protocol for discovering and terminating processes bound to a TCP port."""

    @abstractmethod
    def list_listeners(self, port: int) -> set[int]:
        """Return the PIDs currently listening on ``port``.

        Raises:
            ListenerQueryError: If no listing mechanism could answer.
        """
        ...

    @abstractmethod
    def terminate(self, pid: int, force: bool = False) -> None:
        """Send a termination signal to ``pid``.

        Args:
            pid: Process to signal.
            force: Send the unconditional kill signal instead of the graceful one.

        Raises:
            OSError: If the signal could not be delivered.
        """
        ...


@runtime_checkable
class CollectionSource(Protocol):
    """Protocol for loading content collections by name."""

    @abstractmethod
    def get_collection(self, name: str) -> list[ContentEntry]:
        """Return all published entries of the named collection."""
        ...
