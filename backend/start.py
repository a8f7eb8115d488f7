#!/usr/bin/env python3
"""
Startup script for the livecast backend
"""

import sys

import uvicorn

from .config import Settings


def main():
    """Main startup function"""
    print("📡 Starting livecast backend...")

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    if not settings.public_dir.is_dir():
        print(f"⚠️  Static directory {settings.public_dir} not found, only the API will be served")

    print(f"📍 Server will run on {settings.host}:{settings.port}")
    print(f"🔄 Auto-reload: {'enabled' if settings.debug else 'disabled'}")
    print(f"🌐 Signaling endpoint: ws://{settings.host}:{settings.port}/ws")
    print(f"👥 Groups: {len(settings.group_ids)} x {settings.users_per_group} users")
    print(f"📊 API docs: http://{settings.host}:{settings.port}/docs")
    print("🚀 Starting server...")

    try:
        uvicorn.run(
            "backend.main:create_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
