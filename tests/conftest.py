"""Pytest configuration and fixtures."""

import uuid

import pytest
import pytest_asyncio

from shortener.repositories.memory import MemoryURLRepository
from shortener.repositories.relational import RelationalURLRepository
from shortener.services.encoder import Base62Encoder
from shortener.services.url_service import ShortURLService

BASE_URL = "http://localhost:8080"


class ScriptedEncoder(Base62Encoder):
    """Encoder that returns a fixed sequence of codes."""

    def __init__(self, codes):
        self._codes = iter(codes)

    def generate(self) -> str:
        return next(self._codes)


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def owner() -> uuid.UUID:
    return uuid.UUID("e774844b-5895-4b08-b867-50480263f75b")


@pytest.fixture
def other_owner() -> uuid.UUID:
    return uuid.UUID("0b7c5a53-2c49-4d0e-9a55-1d3f7d1c2e11")


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "short-url-db.json"


@pytest_asyncio.fixture
async def memory_repository(log_path):
    repository = MemoryURLRepository(str(log_path))
    yield repository
    await repository.close()


@pytest_asyncio.fixture
async def sqlite_repository(tmp_path):
    repository = RelationalURLRepository(sqlite_url(tmp_path / "shortener.db"))
    await repository.initialize()
    yield repository
    await repository.close()


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def repository(request, tmp_path):
    """Each backend in turn, so contract tests run against both."""
    if request.param == "memory":
        repository = MemoryURLRepository(str(tmp_path / "short-url-db.json"))
    else:
        repository = RelationalURLRepository(sqlite_url(tmp_path / "shortener.db"))
        await repository.initialize()
    yield repository
    await repository.close()


@pytest_asyncio.fixture
async def service(repository):
    service = ShortURLService(repository, base_url=BASE_URL)
    yield service
    await service.wait_for_pending_deletes()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/a",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def scripted_encoder():
    """Build an encoder that returns the given codes in order."""
    return ScriptedEncoder
