"""
API Gateway - HTTP front door that reaches the auth service over RabbitMQ
"""
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from kombu import Connection

from .config import Settings, get_settings
from .errors import TransportError
from .main import configure_logging
from .messaging import RequestClient
from .routes import auth, health
from .schemas import ServerResponse
from .transport import RpcClient

logger = logging.getLogger(__name__)


def create_app(auth_client: RequestClient, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="YouApp API Gateway",
        description="Registration, login and token refresh for the YouApp platform",
        version="1.0.0",
    )
    app.state.auth_client = auth_client

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TransportError)
    async def transport_error_handler(_request: Request, exc: TransportError):
        logger.error("Auth service request failed: %s", exc)
        body = ServerResponse(is_ok=False, message="Auth service unavailable")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.to_wire())

    # Include routers
    app.include_router(auth.router)
    app.include_router(health.router)
    return app


def build_app() -> FastAPI:
    """Application factory for uvicorn (`--factory`)."""
    settings = get_settings()
    configure_logging(settings)
    client = RpcClient(
        Connection(settings.broker_url),
        settings.RABBITMQ_AUTH_QUEUE,
        timeout=settings.RPC_TIMEOUT_SECONDS,
    )
    return create_app(client, settings)


def serve() -> None:
    uvicorn.run("youapp_platform.youapp_platform.auth_service.app:build_app", factory=True, host="0.0.0.0", port=8000)
