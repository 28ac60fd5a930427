"""Pytest fixtures."""

import pathlib

import pytest
from fastapi.testclient import TestClient

from attendance_api.config import Settings
from attendance_api.database import Database
from attendance_api.main import create_app
from attendance_api.services.attendance import AttendanceStore
from attendance_api.services.roster import RosterStore
from attendance_api.storage.file_storage import FileStorage
from attendance_api.storage.sql_storage import SqlStorage

BACKENDS = ["file", "database"]


def sqlite_url(path: pathlib.Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture(params=BACKENDS)
async def storage(request, tmp_path: pathlib.Path, anyio_backend):
    """An opened storage backend, once per backend type."""
    if request.param == "file":
        backend = FileStorage(str(tmp_path / "data"))
    else:
        backend = SqlStorage(Database(sqlite_url(tmp_path / "test.db")), connect_retries=1, retry_delay=0)
    await backend.open()
    yield backend
    await backend.close()


@pytest.fixture
def roster(storage) -> RosterStore:
    return RosterStore(storage, strict=True)


@pytest.fixture
def lax_roster(storage) -> RosterStore:
    return RosterStore(storage, strict=False)


@pytest.fixture
def attendance(storage) -> AttendanceStore:
    return AttendanceStore(storage, strict=True)


@pytest.fixture
def lax_attendance(storage) -> AttendanceStore:
    return AttendanceStore(storage, strict=False)


def make_settings(backend: str, tmp_path: pathlib.Path, **overrides) -> Settings:
    return Settings(
        storage_backend=backend,
        data_dir=str(tmp_path / "data"),
        database_url=sqlite_url(tmp_path / "api.db"),
        db_connect_retries=1,
        db_retry_delay=0,
        **overrides,
    )


@pytest.fixture(params=BACKENDS)
def client(request, tmp_path: pathlib.Path):
    """HTTP client for a strict-mode app, once per backend type."""
    with TestClient(create_app(make_settings(request.param, tmp_path))) as test_client:
        yield test_client


@pytest.fixture
def lax_client(tmp_path: pathlib.Path):
    """HTTP client for a lax-mode app on file storage."""
    settings = make_settings("file", tmp_path, validation_mode="lax")
    with TestClient(create_app(settings)) as test_client:
        yield test_client
