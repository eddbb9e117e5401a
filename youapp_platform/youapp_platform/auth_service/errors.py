"""
Error taxonomy shared by the auth service and its HTTP-facing gateway.
"""
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    """Numeric error codes surfaced to API clients."""

    # Profile / horoscope collaborator
    PROFILE_NOT_FOUND = 1000
    PROFILE_BIRTHDAY_FORMAT = 1003
    BIRTHDAY_REQUIRED = 1004
    BIRTHDAY_FORMAT = 1005
    HOROSCOPE_ZODIAC_FAILED = 1006

    # Authentication
    USER_EXISTS = 2002
    USER_CREATE_FAILED = 2003
    INVALID_LOGIN = 2004
    INVALID_REFRESH_TOKEN = 2005

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_MESSAGES = {
    ErrorCode.PROFILE_NOT_FOUND: "Profile not found",
    ErrorCode.PROFILE_BIRTHDAY_FORMAT: "Birthday is not in the format of YYYY-MM-DD",
    ErrorCode.BIRTHDAY_REQUIRED: "Birthday is required",
    ErrorCode.BIRTHDAY_FORMAT: "Birthday is not in the format of YYYY-MM-DD",
    ErrorCode.HOROSCOPE_ZODIAC_FAILED: "Failed to get horoscope and/or zodiac",
    ErrorCode.USER_EXISTS: "User already exists",
    ErrorCode.USER_CREATE_FAILED: "User creation failed",
    ErrorCode.INVALID_LOGIN: "Invalid username, email or password",
    ErrorCode.INVALID_REFRESH_TOKEN: "Invalid refresh token",
}

_HTTP_STATUS = {
    ErrorCode.PROFILE_NOT_FOUND: 404,
    ErrorCode.PROFILE_BIRTHDAY_FORMAT: 400,
    ErrorCode.BIRTHDAY_REQUIRED: 400,
    ErrorCode.BIRTHDAY_FORMAT: 400,
    ErrorCode.HOROSCOPE_ZODIAC_FAILED: 500,
    ErrorCode.USER_EXISTS: 400,
    ErrorCode.USER_CREATE_FAILED: 500,
    ErrorCode.INVALID_LOGIN: 400,
    ErrorCode.INVALID_REFRESH_TOKEN: 401,
}


class TokenErrorReason(str, Enum):
    EXPIRED = "EXPIRED"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    MALFORMED = "MALFORMED"


class TokenError(Exception):
    """Raised when a token fails verification."""

    def __init__(self, reason: TokenErrorReason, detail: str = ""):
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason


class TransportError(Exception):
    """Base class for request/reply transport failures."""


class RpcError(TransportError):
    """The remote handler replied with an error."""


class RpcTimeoutError(TransportError):
    """No reply arrived within the configured timeout."""


class RpcUnavailableError(TransportError):
    """The broker could not be reached."""
