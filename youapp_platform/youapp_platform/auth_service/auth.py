from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import asyncio
import json
import jwt

from .errors import TokenError, TokenErrorReason
from .schemas import JwtPayload, TokenPair

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(minutes=3)
REFRESH_TOKEN_TTL = timedelta(days=7)
MAX_CLAIM_BYTES = 1024
# tolerated clock skew between issuing and verifying workers
CLOCK_SKEW_LEEWAY = timedelta(seconds=5)

# Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class PasswordHasher:
    """
    Salted one-way password hashing.

    Digests are in modular crypt format, so scheme, rounds and salt travel
    with the hash and verification needs nothing else.
    """

    def __init__(self, context: CryptContext = pwd_context):
        self._context = context

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            # digest could not be identified or parsed
            return False

    async def hash_async(self, plaintext: str) -> str:
        """Hash in a worker thread to keep the event loop free."""
        return await asyncio.to_thread(self.hash, plaintext)

    async def verify_async(self, plaintext: str, digest: str) -> bool:
        return await asyncio.to_thread(self.verify, plaintext, digest)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Issues and verifies HS256 session tokens.

    Access and refresh tokens are signed with different secrets so that one
    secret can never be used to forge the other kind of token.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("TokenCodec requires non-empty access and refresh secrets")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh secrets must differ")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._clock = clock or _utcnow

    def issue(self, claim: JwtPayload, secret: str, ttl: timedelta) -> str:
        """
        Sign `claim` with `secret`, valid for `ttl` from now.

        Raises:
            ValueError: If the serialized claim exceeds MAX_CLAIM_BYTES
        """
        body = claim.model_dump()
        size = len(json.dumps(body, separators=(",", ":")).encode("utf-8"))
        if size > MAX_CLAIM_BYTES:
            raise ValueError(f"Claim is {size} bytes, limit is {MAX_CLAIM_BYTES}")
        now = self._clock()
        payload = {**body, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def verify(self, token: str, secret: str) -> JwtPayload:
        """
        Verify signature and expiry of `token` and return its claim.

        Raises:
            TokenError: With reason EXPIRED, BAD_SIGNATURE or MALFORMED
        """
        try:
            data = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                leeway=CLOCK_SKEW_LEEWAY,
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError(TokenErrorReason.EXPIRED, str(e)) from e
        except jwt.InvalidSignatureError as e:
            raise TokenError(TokenErrorReason.BAD_SIGNATURE, str(e)) from e
        except jwt.InvalidTokenError as e:
            raise TokenError(TokenErrorReason.MALFORMED, str(e)) from e
        return JwtPayload(sub=data["sub"])

    def issue_access(self, claim: JwtPayload) -> str:
        return self.issue(claim, self._access_secret, ACCESS_TOKEN_TTL)

    def issue_refresh(self, claim: JwtPayload) -> str:
        return self.issue(claim, self._refresh_secret, REFRESH_TOKEN_TTL)

    def verify_access(self, token: str) -> JwtPayload:
        return self.verify(token, self._access_secret)

    def verify_refresh(self, token: str) -> JwtPayload:
        return self.verify(token, self._refresh_secret)

    async def issue_pair(self, claim: JwtPayload) -> TokenPair:
        # the two signatures are independent, run them side by side
        access_token, refresh_token = await asyncio.gather(
            asyncio.to_thread(self.issue_access, claim),
            asyncio.to_thread(self.issue_refresh, claim),
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)
