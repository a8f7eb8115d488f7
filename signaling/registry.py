"""
Connection registry for the signaling relay.

Tracks every open socket, the subset that announced itself as a viewer, and
the single broadcaster slot. All mutations go through one asyncio.Lock so
concurrent connect/disconnect events can never leave two sockets holding the
broadcaster slot.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional, Set


@dataclass
class Departure:
    """What a socket was when it left the registry."""
    was_broadcaster: bool = False
    was_viewer: bool = False


class ConnectionRegistry:
    def __init__(self):
        self._lock = asyncio.Lock()
        self._clients: Set[Any] = set()
        self._viewers: Set[Any] = set()
        self._broadcaster: Optional[Any] = None

    # ------------------ mutations ------------------

    async def add(self, conn) -> None:
        async with self._lock:
            self._clients.add(conn)

    async def register_broadcaster(self, conn) -> bool:
        """Admit conn as broadcaster. False if another socket holds the slot."""
        async with self._lock:
            if self._broadcaster is not None and self._broadcaster is not conn:
                return False
            self._broadcaster = conn
            self._clients.add(conn)
            self._viewers.discard(conn)
            return True

    async def register_viewer(self, conn) -> bool:
        """Mark conn as a viewer. Returns True when the viewer set changed."""
        async with self._lock:
            self._clients.add(conn)
            if conn is self._broadcaster or conn in self._viewers:
                return False
            self._viewers.add(conn)
            return True

    async def release_broadcaster(self, conn) -> bool:
        async with self._lock:
            if self._broadcaster is not conn:
                return False
            self._broadcaster = None
            return True

    async def deregister(self, conn) -> Departure:
        async with self._lock:
            departure = Departure(
                was_broadcaster=self._broadcaster is conn,
                was_viewer=conn in self._viewers,
            )
            self._clients.discard(conn)
            self._viewers.discard(conn)
            if departure.was_broadcaster:
                self._broadcaster = None
            return departure

    # ------------------ snapshots ------------------

    @property
    def broadcaster(self) -> Optional[Any]:
        return self._broadcaster

    @property
    def is_live(self) -> bool:
        return self._broadcaster is not None

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)

    def viewers(self) -> List[Any]:
        return list(self._viewers)

    def clients(self) -> List[Any]:
        return list(self._clients)

    def audience(self) -> List[Any]:
        """Every open socket except the broadcaster."""
        return [c for c in self._clients if c is not self._broadcaster]

    def __contains__(self, conn) -> bool:
        return conn in self._clients

    def __len__(self) -> int:
        return len(self._clients)
