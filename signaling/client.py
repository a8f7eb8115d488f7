#!/usr/bin/env python3
"""
Headless signaling client.

Connects to the relay, announces a role ("viewer" or "broadcaster") and hands
every decoded message to a callback. Dropped connections are retried with a
linear (or fixed) delay, giving up after `max_retries` consecutive failures.

    python -m signaling.client --url ws://localhost:3000/ws --role viewer
"""

import argparse
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)

DEFAULT_URL = "ws://localhost:3000/ws"
MAX_RETRIES = 3
RETRY_DELAY = 3.0


class SignalingConnectionError(Exception):
    """Raised when the relay stays unreachable after every retry."""


class SignalingClient:
    def __init__(self, url: str = DEFAULT_URL, role: str = "viewer",
                 on_message: Optional[Callable[[Dict[str, Any]], Any]] = None,
                 max_retries: int = MAX_RETRIES, retry_delay: float = RETRY_DELAY,
                 linear_backoff: bool = True,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        if role not in ("viewer", "broadcaster"):
            raise ValueError(f"role must be 'viewer' or 'broadcaster', got {role!r}")
        self.url = url
        self.role = role
        self.on_message = on_message
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.linear_backoff = linear_backoff
        self.last_error: Optional[str] = None
        self._sleep = sleep or asyncio.sleep
        self._ws = None
        self._stopped = False

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        if self.linear_backoff:
            return self.retry_delay * attempt
        return self.retry_delay

    async def send(self, payload: Dict[str, Any]) -> None:
        if self._ws is None:
            raise SignalingConnectionError("not connected")
        await self._ws.send(json.dumps(payload))

    async def stop(self) -> None:
        self._stopped = True
        if self._ws is not None:
            await self._ws.close()

    async def _dispatch(self, msg: Dict[str, Any]) -> None:
        if self.on_message is None:
            return
        result = self.on_message(msg)
        if asyncio.iscoroutine(result):
            await result

    async def _session(self) -> None:
        async with websockets.connect(self.url) as ws:
            self._ws = ws
            logger.info(f"Connected to signaling server {self.url} as {self.role}")
            await ws.send(json.dumps({"type": self.role}))
            async for raw in ws:
                try:
                    msg = json.loads(raw)
                except ValueError:
                    logger.warning(f"Ignoring malformed message: {raw!r}")
                    continue
                if not isinstance(msg, dict):
                    continue
                if msg.get("type") == "error":
                    # Relay refused us (e.g. broadcaster already exists); retrying won't help
                    self.last_error = msg.get("message")
                    logger.error(f"Relay error: {self.last_error}")
                    self._stopped = True
                    break
                await self._dispatch(msg)

    async def run(self) -> None:
        attempt = 0
        while not self._stopped:
            connected = False
            try:
                await self._session()
                connected = True
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                connected = self._ws is not None
                logger.warning(f"Signaling connection lost: {e}")
            finally:
                self._ws = None

            if self._stopped:
                break
            attempt = 1 if connected else attempt + 1
            if attempt > self.max_retries:
                raise SignalingConnectionError(
                    f"Cannot connect to {self.url} after {self.max_retries} retries"
                )
            delay = self.backoff_delay(attempt)
            logger.info(f"Reconnecting in {delay:.1f}s (attempt {attempt}/{self.max_retries})")
            await self._sleep(delay)


def main():
    parser = argparse.ArgumentParser(description="Watch a signaling relay from the command line")
    parser.add_argument("--url", default=DEFAULT_URL)
    parser.add_argument("--role", choices=["viewer", "broadcaster"], default="viewer")
    parser.add_argument("--retries", type=int, default=MAX_RETRIES)
    parser.add_argument("--delay", type=float, default=RETRY_DELAY)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    def show(msg):
        if msg.get("type") == "streamStatus":
            print("🔴 LIVE" if msg.get("isLive") else "⚫ offline")
        elif msg.get("type") == "viewerCount":
            print(f"👀 viewers: {msg.get('count')}")
        else:
            print(f"📨 {msg}")

    client = SignalingClient(args.url, args.role, on_message=show,
                             max_retries=args.retries, retry_delay=args.delay)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\n🛑 Stopped by user")
    except SignalingConnectionError as e:
        print(f"❌ {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
