from pydantic import BaseModel, ConfigDict, Field, field_validator

from typing import Any, Optional

from .errors import ErrorCode


class CreateUserDto(BaseModel):
    # profile fields beyond the credentials are passed through to the directory
    model_config = ConfigDict(extra="allow")

    username: str
    email: str
    password: str


class LoginUserDto(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username_or_email: str = Field(alias="usernameOrEmail")
    password: str


class EmailAndUsername(BaseModel):
    email: str
    username: str


class UpdatePassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    password: str


class UserRecord(BaseModel):
    """Credential record as returned by the user directory."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    username: str
    email: str
    password: str

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Any:
        return value if value is None else str(value)


class JwtPayload(BaseModel):
    """
    Claim embedded in both tokens of a pair.
    Keep it small: the serialized claim must stay under 1024 bytes.
    """

    sub: str


class TokenPair(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class ErrorData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    error: str

    @classmethod
    def from_code(cls, code: ErrorCode) -> "ErrorData":
        return cls(status_code=int(code), error=code.message)


class ServerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_ok: bool = Field(alias="isOk")
    message: Optional[str] = None
    error_code: Optional[int] = Field(default=None, alias="errorCode")
    data: Optional[Any] = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
