"""
User directory client.

The directory is the user-storage service of record for credentials. The auth
service only reaches it through the four operations below.
"""
from typing import Dict, Optional, Protocol
import logging
import uuid

from .auth import PasswordHasher
from .messaging import RequestClient
from .schemas import CreateUserDto, EmailAndUsername, UpdatePassword, UserRecord

logger = logging.getLogger(__name__)

FIND_USER_BY_EMAIL_OR_USERNAME = "find-user-by-email-or-username"
CREATE_USER = "create-user"
IS_USERID_EXIST = "is-userid-exist"
UPDATE_PASSWORD = "update-password"


class UserDirectory(Protocol):
    async def find_by_email_or_username(self, email: str, username: str) -> Optional[UserRecord]: ...

    async def create_user(self, user: CreateUserDto) -> Optional[str]: ...

    async def user_id_exists(self, user_id: str) -> bool: ...

    async def update_password(self, user_id: str, password_hash: str) -> bool: ...


class RpcUserDirectory:
    """Directory reached over the request/response contract (user service queue)."""

    def __init__(self, client: RequestClient):
        self._client = client

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[UserRecord]:
        query = EmailAndUsername(email=email, username=username)
        raw = await self._client.send(FIND_USER_BY_EMAIL_OR_USERNAME, query.model_dump())
        if not raw:
            return None
        return UserRecord.model_validate(raw)

    async def create_user(self, user: CreateUserDto) -> Optional[str]:
        user_id = await self._client.send(CREATE_USER, user.model_dump())
        return str(user_id) if user_id else None

    async def user_id_exists(self, user_id: str) -> bool:
        return bool(await self._client.send(IS_USERID_EXIST, user_id))

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        update = UpdatePassword(user_id=user_id, password=password_hash)
        return bool(await self._client.send(UPDATE_PASSWORD, update.model_dump(by_alias=True)))


class InMemoryUserDirectory:
    """
    Test/dev directory. Keys records by id.

    When a hasher is given, `create_user` stores the digest of the submitted
    password, as the user service does by calling `hash-password`.
    """

    def __init__(self, hasher: Optional[PasswordHasher] = None):
        self._hasher = hasher
        self._records: Dict[str, UserRecord] = {}

    def add_user(self, *, username: str, email: str, password_hash: str, user_id: Optional[str] = None) -> UserRecord:
        record = UserRecord(
            id=user_id or uuid.uuid4().hex,
            username=username,
            email=email,
            password=password_hash,
        )
        self._records[record.id] = record
        return record

    def get(self, user_id: str) -> Optional[UserRecord]:
        return self._records.get(user_id)

    def remove(self, user_id: str) -> None:
        self._records.pop(user_id, None)

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[UserRecord]:
        for record in self._records.values():
            if record.email == email or record.username == username:
                return record
        return None

    async def create_user(self, user: CreateUserDto) -> Optional[str]:
        if await self.find_by_email_or_username(user.email, user.username):
            return None
        password = user.password
        if self._hasher is not None:
            password = await self._hasher.hash_async(password)
        record = self.add_user(username=user.username, email=user.email, password_hash=password)
        logger.debug("Created user %s", record.id)
        return record.id

    async def user_id_exists(self, user_id: str) -> bool:
        return user_id in self._records

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        record = self._records.get(user_id)
        if record is None:
            return False
        self._records[user_id] = record.model_copy(update={"password": password_hash})
        return True
