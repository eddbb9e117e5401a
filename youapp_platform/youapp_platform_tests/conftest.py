"""
Shared fixtures for auth_service tests.
"""
import pytest
from passlib.context import CryptContext

from youapp_platform.youapp_platform.auth_service.auth import PasswordHasher, TokenCodec
from youapp_platform.youapp_platform.auth_service.directory import InMemoryUserDirectory
from youapp_platform.youapp_platform.auth_service.gateway import AuthController
from youapp_platform.youapp_platform.auth_service.service import AuthService

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012"
PASSWORD = "correct horse battery staple"


@pytest.fixture
def hasher():
    """Hasher with low rounds to keep the suite fast."""
    return PasswordHasher(CryptContext(schemes=["pbkdf2_sha256"], pbkdf2_sha256__default_rounds=1000))


@pytest.fixture
def tokens():
    return TokenCodec(ACCESS_SECRET, REFRESH_SECRET)


@pytest.fixture
def directory(hasher):
    return InMemoryUserDirectory(hasher)


@pytest.fixture
def service(directory, tokens, hasher):
    return AuthService(directory=directory, tokens=tokens, hasher=hasher)


@pytest.fixture
def controller(service):
    return AuthController(service)


@pytest.fixture
def alice(directory, hasher):
    """A stored user whose password is PASSWORD."""
    return directory.add_user(
        username="alice",
        email="alice@example.com",
        password_hash=hasher.hash(PASSWORD),
    )
