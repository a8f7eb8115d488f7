#!/usr/bin/env python3
"""
Standalone signaling relay: one broadcaster <-> many viewers.

Runs the same SignalingRelay the FastAPI backend mounts, on a bare
`websockets` server for deployments that only need signaling. Any request
path is accepted.
"""

import asyncio
import logging
import os

import websockets
from websockets.exceptions import ConnectionClosedOK, ConnectionClosedError

from .router import SignalingRelay

# ---- Config ----
HOST = os.environ.get("SIGNALING_HOST", "0.0.0.0")
PORT = int(os.environ.get("SIGNALING_PORT", "8765"))
PING_INTERVAL = float(os.environ.get("SIGNALING_PING_INTERVAL", "20"))
PING_TIMEOUT = float(os.environ.get("SIGNALING_PING_TIMEOUT", "20"))

logger = logging.getLogger(__name__)


def make_handler(relay: SignalingRelay):
    async def handler(ws):
        await relay.connect(ws)
        try:
            async for raw in ws:
                if not await relay.route(ws, raw):
                    break
        except (ConnectionClosedOK, ConnectionClosedError):
            # Normal browser refresh/close
            pass
        finally:
            await relay.disconnect(ws)

    return handler


async def serve(relay: SignalingRelay = None, host: str = HOST, port: int = PORT):
    relay = relay or SignalingRelay()
    async with websockets.serve(
        make_handler(relay), host, port,
        ping_interval=PING_INTERVAL, ping_timeout=PING_TIMEOUT,
    ):
        logger.info(f"Signaling on ws://{host}:{port}")
        await asyncio.Future()  # run forever


def main():
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Signaling relay stopped")


if __name__ == "__main__":
    main()
