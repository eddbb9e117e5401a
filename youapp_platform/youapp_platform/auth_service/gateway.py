"""
Message gateway for the auth service.

Each handler answers one message pattern: it extracts the payload, runs the
matching AuthService operation and settles the request. Normal returns,
business errors included, are acked. Unexpected exceptions are logged and
nacked, and the caller gets a safe default instead of the exception.
"""
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from pydantic import BaseModel, TypeAdapter

from .messaging import RequestContext, extract_data
from .schemas import CreateUserDto, LoginUserDto
from .service import AuthService

logger = logging.getLogger(__name__)

_optional_str = TypeAdapter(Optional[str])
_str = TypeAdapter(str)


def message_pattern(pattern: str):
    """Mark a controller coroutine as the handler for `pattern`."""
    def decorator(func):
        func.__message_pattern__ = pattern
        return func
    return decorator


def to_wire(result: Any) -> Any:
    """JSON-compatible form of a handler result, using camelCase wire names."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    return result


class AuthController:
    def __init__(self, auth_service: AuthService):
        self.auth_service = auth_service
        self._handlers: Dict[str, Callable[[RequestContext], Awaitable[Any]]] = {}
        for name in dir(type(self)):
            pattern = getattr(getattr(type(self), name), "__message_pattern__", None)
            if pattern:
                self._handlers[pattern] = getattr(self, name)

    @property
    def patterns(self):
        return sorted(self._handlers)

    async def dispatch(self, pattern: str, context: RequestContext) -> Any:
        """Route a request by pattern and return the wire form of the result."""
        handler = self._handlers.get(pattern)
        if handler is None:
            logger.warning("No handler for message pattern %r", pattern)
            extract_data(context).nack()
            return None
        return to_wire(await handler(context))

    @message_pattern("register")
    async def register(self, context: RequestContext):
        return await self._handle(
            "register", context, CreateUserDto.model_validate, self.auth_service.register, False
        )

    @message_pattern("login")
    async def login(self, context: RequestContext):
        return await self._handle(
            "login", context, LoginUserDto.model_validate, self.auth_service.login, None
        )

    @message_pattern("refresh")
    async def refresh(self, context: RequestContext):
        return await self._handle(
            "refresh", context, _optional_str.validate_python, self.auth_service.refresh, None
        )

    @message_pattern("hash-password")
    async def hash_password(self, context: RequestContext):
        return await self._handle(
            "hash-password", context, _str.validate_python, self.auth_service.hash_password, None
        )

    @message_pattern("validate")
    async def validate(self, context: RequestContext):
        return await self._handle(
            "validate", context, _optional_str.validate_python, self.auth_service.validate_jwt, None
        )

    async def _handle(
        self,
        pattern: str,
        context: RequestContext,
        parse: Callable[[Any], Any],
        operation: Callable[[Any], Awaitable[Any]],
        default: Any,
    ) -> Any:
        extracted = extract_data(context)
        try:
            result = await operation(parse(extracted.data))
            extracted.ack()
            return result
        except Exception:
            logger.exception("Handler for %r failed", pattern)
            extracted.nack()
            return default
