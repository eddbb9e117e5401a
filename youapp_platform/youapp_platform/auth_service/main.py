"""
Auth Service - message-driven worker answering auth requests over RabbitMQ
"""
from typing import Optional
import logging

from kombu import Connection

from .auth import PasswordHasher, TokenCodec
from .config import Settings, get_settings
from .directory import RpcUserDirectory, UserDirectory
from .gateway import AuthController
from .service import AuthService
from .transport import RpcClient, RpcServer
from .utils.event_logger import configure_event_logging

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    configure_event_logging(settings.LOG_DIR)


def build_auth_service(settings: Settings, directory: Optional[UserDirectory] = None) -> AuthService:
    """
    Wire the auth service from settings.

    Without an explicit directory, the user service is reached over its
    RabbitMQ queue.
    """
    if directory is None:
        user_client = RpcClient(
            Connection(settings.broker_url),
            settings.RABBITMQ_USER_QUEUE,
            timeout=settings.RPC_TIMEOUT_SECONDS,
        )
        directory = RpcUserDirectory(user_client)
    tokens = TokenCodec(settings.JWT_ACCESS_SECRET, settings.JWT_REFRESH_SECRET)
    return AuthService(directory=directory, tokens=tokens, hasher=PasswordHasher())


def build_server(settings: Settings, controller: AuthController) -> RpcServer:
    return RpcServer(
        Connection(settings.broker_url),
        settings.RABBITMQ_AUTH_QUEUE,
        controller,
        prefetch_count=settings.PREFETCH_COUNT,
        requeue_on_nack=settings.NACK_REQUEUE,
    )


def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    controller = AuthController(build_auth_service(settings))
    server = build_server(settings, controller)
    logger.info("Starting auth service on queue %s", settings.RABBITMQ_AUTH_QUEUE)
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Auth service interrupted")
    finally:
        server.close()


if __name__ == "__main__":
    main()
