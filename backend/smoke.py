#!/usr/bin/env python3
"""
Smoke test against a running livecast backend

    python -m backend.smoke            (after `python -m backend.start`)
"""

import asyncio
import json
import os

import requests
import websockets

# Configuration
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:3000")
WS_URL = os.getenv("WS_URL", "ws://localhost:3000/ws")


async def check_signaling():
    """Join as viewer and print what the relay answers"""
    print("🔌 Testing signaling connection...")

    try:
        async with websockets.connect(WS_URL) as websocket:
            print("✅ WebSocket connected successfully!")

            await websocket.send(json.dumps({"type": "viewer"}))
            print("📤 Sent viewer hello")

            try:
                message = await asyncio.wait_for(websocket.recv(), timeout=5.0)
                data = json.loads(message)
                print(f"📨 Received: {data}")
                if data.get("type") == "streamStatus":
                    print(f"   Stream is {'LIVE' if data.get('isLive') else 'offline'}")
            except asyncio.TimeoutError:
                print("⚠️  No stream status received within timeout")

            # Malformed frames must not kill the connection
            await websocket.send("not json")
            await websocket.send(json.dumps({"type": "viewer"}))
            try:
                await asyncio.wait_for(websocket.recv(), timeout=5.0)
                print("✅ Connection survived a malformed message")
            except asyncio.TimeoutError:
                print("⚠️  No reply after malformed message")

    except Exception as e:
        print(f"❌ Signaling test failed: {e}")


def check_rest_api():
    """Test REST API endpoints"""
    print("\n🌐 Testing REST API endpoints...")

    for path in ("/health", "/api/stream", "/api/groups"):
        try:
            response = requests.get(f"{BACKEND_URL}{path}", timeout=5)
            if response.status_code == 200:
                print(f"✅ {path} working")
                print(f"   {response.json()}")
            else:
                print(f"❌ {path} failed: {response.status_code}")
        except Exception as e:
            print(f"❌ {path} error: {e}")


async def main():
    """Main smoke test function"""
    print("🧪 Starting livecast smoke test...")
    print(f"📍 Backend URL: {BACKEND_URL}")
    print(f"🌐 WebSocket URL: {WS_URL}")
    print("=" * 50)

    check_rest_api()
    await check_signaling()

    print("\n" + "=" * 50)
    print("🏁 Smoke test completed!")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n🛑 Smoke test interrupted by user")
    except Exception as e:
        print(f"\n❌ Smoke test failed: {e}")
        print("\n💡 Make sure the backend is running:")
        print("   python -m backend.start")
