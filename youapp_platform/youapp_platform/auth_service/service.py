"""
Authentication service: registration, login, token refresh and validation.

Expected failures come back as values (ErrorData or None). Anything raised
from here is unexpected and is handled by the message gateway.
"""
from typing import Optional, Union
import logging

from .auth import PasswordHasher, TokenCodec
from .directory import UserDirectory
from .errors import ErrorCode, TokenError
from .schemas import CreateUserDto, ErrorData, JwtPayload, LoginUserDto, TokenPair, UserRecord
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthService:
    def __init__(
        self,
        *,
        directory: UserDirectory,
        tokens: TokenCodec,
        hasher: Optional[PasswordHasher] = None,
    ):
        self.directory = directory
        self.tokens = tokens
        self.hasher = hasher or PasswordHasher()

    async def register(self, user: CreateUserDto) -> Union[ErrorData, bool]:
        """
        Register a new user unless the email or username is already taken.

        Returns:
            True on success, ErrorData with USER_EXISTS or USER_CREATE_FAILED otherwise
        """
        existing = await self.directory.find_by_email_or_username(user.email, user.username)
        if existing is not None:
            log_auth_event("register_conflict", existing.id)
            return ErrorData.from_code(ErrorCode.USER_EXISTS)

        user_id = await self.directory.create_user(user)
        if not user_id:
            log_auth_event("register_failure")
            return ErrorData.from_code(ErrorCode.USER_CREATE_FAILED)

        log_auth_event("register_success", user_id)
        return True

    async def login(self, credentials: LoginUserDto) -> Optional[TokenPair]:
        """Authenticate and return a fresh token pair, or None."""
        user = await self._validate_user(credentials.username_or_email, credentials.password)
        if user is None:
            return None
        pair = await self.tokens.issue_pair(JwtPayload(sub=user.id))
        log_auth_event("login_success", user.id)
        return pair

    async def refresh(self, refresh_token: Optional[str]) -> Optional[TokenPair]:
        """
        Exchange a "Bearer "-prefixed refresh token for a new pair.

        The subject is taken from the verified token only. The presented token
        stays valid until it expires.
        """
        if not refresh_token or not refresh_token.startswith(BEARER_PREFIX):
            log_auth_event("refresh_failure", metadata={"reason": "missing_bearer_prefix"})
            return None
        token = refresh_token[len(BEARER_PREFIX):].strip()
        try:
            payload = self.tokens.verify_refresh(token)
        except TokenError as e:
            logger.info("Refresh token rejected: %s", e.reason.value)
            log_auth_event("refresh_failure", metadata={"reason": e.reason.value.lower()})
            return None
        pair = await self.tokens.issue_pair(JwtPayload(sub=payload.sub))
        log_auth_event("refresh_success", payload.sub)
        return pair

    async def validate_jwt(self, jwt: Optional[str]) -> Optional[JwtPayload]:
        """Return the claim of a valid access token whose subject still exists."""
        if not jwt:
            return None
        try:
            payload = self.tokens.verify_access(jwt)
        except TokenError as e:
            logger.debug("Access token rejected: %s", e.reason.value)
            return None
        if not await self.directory.user_id_exists(payload.sub):
            logger.info("Access token subject %s no longer exists", payload.sub)
            return None
        return payload

    async def hash_password(self, password: str) -> str:
        return await self.hasher.hash_async(password)

    async def _validate_user(self, email_or_username: str, password: str) -> Optional[UserRecord]:
        """
        Look the user up by email or username and check the password.

        On a match the same plaintext is hashed again with a fresh salt and
        written back; the login only succeeds if that write-back succeeds.
        """
        user = await self.directory.find_by_email_or_username(email_or_username, email_or_username)
        if user is None:
            log_auth_event("login_failure", metadata={"reason": "unknown_user"})
            return None

        if not await self.hasher.verify_async(password, user.password):
            log_auth_event("login_failure", user.id, {"reason": "password_mismatch"})
            return None

        new_password = await self.hash_password(password)
        updated = await self.directory.update_password(user.id, new_password)
        if not updated:
            logger.warning("Password rotation failed for user %s", user.id)
            log_auth_event("login_failure", user.id, {"reason": "rotation_failed"})
            return None
        return user
