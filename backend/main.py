from fastapi import BackgroundTasks, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import logging
import os

from signaling.router import SignalingRelay

from .config import Settings
from .notifier import WebhookNotifier
from .registration import RegistrationError, RegistrationService
from .store import AccountStore, StoreError

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

SIGNALING_PATHS = ("/", "/ws", "/api/ws")


# Simple data models
class RegistrationRequest(BaseModel):
    name: str
    email: str
    phone: str
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the send/close interface the relay uses."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send(self, text: str):
        await self.websocket.send_text(text)

    async def close(self, code: int = 1000, reason: str = ""):
        await self.websocket.close(code=code, reason=reason)


# WebSocket endpoint for broadcaster/viewer signaling
async def signaling_endpoint(websocket: WebSocket):
    relay: SignalingRelay = websocket.app.state.relay
    await websocket.accept()
    conn = WebSocketConnection(websocket)
    await relay.connect(conn)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if not await relay.route(conn, raw):
                break
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Signaling socket error: {e}")
    finally:
        await relay.disconnect(conn)


def create_app(settings: Optional[Settings] = None, relay: Optional[SignalingRelay] = None,
               notifier: Optional[WebhookNotifier] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="livecast",
        description="Live stream signaling relay and group registration",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.relay = relay if relay is not None else SignalingRelay()
    app.state.notifier = notifier or WebhookNotifier(
        settings.telegram_bot_token, settings.telegram_chat_id, timeout=settings.notify_timeout
    )
    app.state.registration = RegistrationService(
        AccountStore(settings.accounts_file, settings.group_ids),
        settings.group_ids,
        settings.users_per_group,
    )

    for path in SIGNALING_PATHS:
        app.add_api_websocket_route(path, signaling_endpoint)

    @app.get("/health")
    async def health_check(request: Request):
        relay = request.app.state.relay
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "isLive": relay.registry.is_live,
            "viewers": relay.registry.viewer_count,
        }

    @app.get("/api/stream")
    async def stream_status(request: Request):
        registry = request.app.state.relay.registry
        return {
            "isLive": registry.is_live,
            "viewers": registry.viewer_count,
            "connections": len(registry),
        }

    @app.post("/api/register", status_code=201)
    def register(body: RegistrationRequest, request: Request, background_tasks: BackgroundTasks):
        """Create an account and assign it to a group bucket"""
        service: RegistrationService = request.app.state.registration
        notifier: WebhookNotifier = request.app.state.notifier
        try:
            account = service.register(
                body.name, body.email, body.phone, body.password, body.confirm_password,
                notify=lambda text: background_tasks.add_task(notifier.send, text),
            )
        except RegistrationError as e:
            # Capacity alerts are queued before the error; HTTPException would drop them
            return JSONResponse(status_code=e.status_code, content={"detail": e.message},
                                background=background_tasks)
        except StoreError as e:
            logger.error(f"Account store unavailable: {e}")
            raise HTTPException(status_code=500, detail="Account store unavailable")
        return {"message": "Account created successfully!", "account": account}

    @app.post("/api/login")
    def login(body: LoginRequest, request: Request):
        service: RegistrationService = request.app.state.registration
        try:
            account = service.login(body.email, body.password)
        except RegistrationError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
        except StoreError as e:
            logger.error(f"Account store unavailable: {e}")
            raise HTTPException(status_code=500, detail="Account store unavailable")
        return {"account": account}

    @app.get("/api/groups")
    def groups(request: Request):
        """Current fill level of every group bucket"""
        try:
            return request.app.state.registration.distribution()
        except StoreError as e:
            logger.error(f"Account store unavailable: {e}")
            raise HTTPException(status_code=500, detail="Account store unavailable")

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"livecast starting up: {len(settings.group_ids)} groups x {settings.users_per_group}, "
            f"webhook {'enabled' if app.state.notifier.enabled else 'disabled'}"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("livecast shutting down...")

    # Static front-end last so it never shadows the routes above
    app.mount("/", StaticFiles(directory=str(settings.public_dir), html=True, check_dir=False), name="public")

    return app
