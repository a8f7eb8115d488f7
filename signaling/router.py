"""
SignalingRelay: routes broadcaster/viewer signaling messages.

Client -> relay:
  {type:"broadcaster"}                 claim the single broadcaster slot
  {type:"viewer"}                      join as viewer, get streamStatus back
  {type:"offer"|"answer"|"candidate", target?:"broadcaster", ...}
                                       forwarded verbatim
  {type:"disconnect"}                  broadcaster stops streaming

Relay -> client:
  {type:"streamStatus", isLive}
  {type:"viewerCount", count}
  {type:"error", message}              sent before closing a rejected socket

The relay never looks inside offer/answer/candidate payloads. Whatever the
broadcaster sends goes to every viewer; whatever anyone else sends goes to
the broadcaster, with or without `target:"broadcaster"`. Frames from
non-broadcasters addressed anywhere else are dropped.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

BROADCASTER = "broadcaster"
VIEWER = "viewer"
OFFER = "offer"
ANSWER = "answer"
CANDIDATE = "candidate"
DISCONNECT = "disconnect"

RELAYED_TYPES = (OFFER, ANSWER, CANDIDATE)

BROADCASTER_EXISTS = "Broadcaster already exists"
POLICY_VIOLATION = 1008


def stream_status(is_live: bool) -> Dict[str, Any]:
    return {"type": "streamStatus", "isLive": is_live}


def viewer_count(count: int) -> Dict[str, Any]:
    return {"type": "viewerCount", "count": count}


def error_message(message: str) -> Dict[str, Any]:
    return {"type": "error", "message": message}


def parse_message(raw) -> Optional[Dict[str, Any]]:
    """Decode one frame. Returns None for anything that is not a JSON object."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(msg, dict):
        return None
    return msg


class SignalingRelay:
    """One broadcaster, many viewers, messages relayed by declared target."""

    def __init__(self, registry: Optional[ConnectionRegistry] = None):
        self.registry = registry if registry is not None else ConnectionRegistry()

    # ------------------ lifecycle ------------------

    async def connect(self, conn) -> None:
        await self.registry.add(conn)
        logger.info(f"New client connected ({len(self.registry)} open)")

    async def disconnect(self, conn) -> None:
        departure = await self.registry.deregister(conn)
        if departure.was_broadcaster:
            logger.info("Broadcaster disconnected")
            await self._fan_out(self.registry.audience(), stream_status(False))
        if departure.was_viewer:
            await self._fan_out(self.registry.clients(), viewer_count(self.registry.viewer_count))

    # ------------------ routing ------------------

    async def route(self, conn, raw) -> bool:
        """Handle one incoming frame. Returns False if the relay closed conn."""
        msg = parse_message(raw)
        if msg is None:
            logger.warning(f"Ignoring malformed signaling message: {str(raw)[:200]!r}")
            return True

        mtype = msg.get("type")

        if mtype == BROADCASTER:
            return await self.register_broadcaster(conn)

        if mtype == VIEWER:
            await self.register_viewer(conn)
            return True

        if mtype in RELAYED_TYPES:
            text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
            await self.relay(conn, msg, text)
            return True

        if mtype == DISCONNECT:
            if await self.registry.release_broadcaster(conn):
                logger.info("Broadcaster disconnected")
                await self._fan_out(self.registry.audience(), stream_status(False))
            return True

        logger.debug(f"Ignoring message of unknown type {mtype!r}")
        return True

    async def register_broadcaster(self, conn) -> bool:
        if not await self.registry.register_broadcaster(conn):
            logger.warning("Rejected second broadcaster")
            await self._send(conn, error_message(BROADCASTER_EXISTS))
            try:
                await conn.close(code=POLICY_VIOLATION, reason=BROADCASTER_EXISTS)
            except Exception as e:
                logger.debug(f"Close after rejection failed: {e}")
            return False

        logger.info("Broadcaster connected")
        await self._fan_out(self.registry.audience(), stream_status(True))
        return True

    async def register_viewer(self, conn) -> None:
        changed = await self.registry.register_viewer(conn)
        await self._send(conn, stream_status(self.registry.is_live))
        if changed:
            await self._fan_out(self.registry.clients(), viewer_count(self.registry.viewer_count))

    async def relay(self, conn, msg: Dict[str, Any], text: str) -> None:
        target = msg.get("target")
        broadcaster = self.registry.broadcaster
        if conn is broadcaster:
            if target == BROADCASTER:
                logger.debug(f"Broadcaster addressed {msg.get('type')} to itself")
                return
            recipients = [v for v in self.registry.viewers() if v is not conn]
        elif target in (None, BROADCASTER):
            if broadcaster is None:
                logger.debug(f"No broadcaster to receive {msg.get('type')}")
                return
            recipients = [broadcaster]
        else:
            # Viewers only ever talk to the broadcaster
            logger.debug(f"Dropping {msg.get('type')} from a viewer addressed to {target!r}")
            return
        await self._fan_out(recipients, text)

    # ------------------ sending ------------------

    async def _send(self, conn, payload) -> bool:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        try:
            await conn.send(data)
            return True
        except Exception as e:
            logger.warning(f"Send failed: {e}")
            return False

    async def _fan_out(self, recipients: Iterable[Any], payload) -> None:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        dead = []
        for conn in list(recipients):
            if not await self._send(conn, data):
                dead.append(conn)
        for conn in dead:
            await self.disconnect(conn)
