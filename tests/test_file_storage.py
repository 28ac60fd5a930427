"""Test the JSON file layout of the file backend."""

import asyncio
import json
import pathlib

import pytest

from attendance_api.exceptions import ValidationError
from attendance_api.schemas.attendance import AttendanceRecord
from attendance_api.schemas.student_schema import StudentBase
from attendance_api.storage.file_storage import FileStorage

pytestmark = pytest.mark.anyio


@pytest.fixture
async def file_storage(tmp_path: pathlib.Path, anyio_backend) -> FileStorage:
    backend = FileStorage(str(tmp_path / "data"))
    await backend.open()
    return backend


async def test_sheet_written_to_prefixed_file(file_storage: FileStorage) -> None:
    # Act
    await file_storage.upsert_sheet(
        "2024-01-10", [AttendanceRecord(name="Ana", status="Present", timestamp="t1")]
    )
    # Assert
    path = file_storage.data_dir / "attendance_2024-01-10.json"
    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["date"] == "2024-01-10"
    assert doc["records"] == [{"name": "Ana", "status": "Present", "timestamp": "t1"}]
    assert list(file_storage.data_dir.glob("*.tmp")) == []


async def test_upsert_keeps_created_at(file_storage: FileStorage) -> None:
    record = AttendanceRecord(name="Ana", status="Present", timestamp="t1")
    await file_storage.upsert_sheet("2024-01-10", [record])
    first = await file_storage.get_sheet("2024-01-10")
    await file_storage.upsert_sheet("2024-01-10", [record, record])
    second = await file_storage.get_sheet("2024-01-10")
    assert second.createdAt == first.createdAt
    assert len(second.records) == 2


async def test_roster_written_to_students_file(file_storage: FileStorage) -> None:
    await file_storage.replace_students([StudentBase(name="Ana", studentId="S1", class_name="7A")])
    docs = json.loads((file_storage.data_dir / "students.json").read_text(encoding="utf-8"))
    assert [(d["name"], d["studentId"], d["class"]) for d in docs] == [("Ana", "S1", "7A")]


async def test_list_dates_ignores_other_files(file_storage: FileStorage) -> None:
    await file_storage.upsert_sheet("2024-01-10", [])
    (file_storage.data_dir / "notes.txt").write_text("x", encoding="utf-8")
    await file_storage.replace_students([])
    assert await file_storage.list_dates() == ["2024-01-10"]


@pytest.mark.parametrize("sheet_date", ["../escape", "a\\b", "..", ""])
async def test_dates_cannot_leave_data_dir(file_storage: FileStorage, sheet_date: str) -> None:
    with pytest.raises(ValidationError):
        await file_storage.upsert_sheet(sheet_date, [])


async def test_missing_files_read_as_empty(file_storage: FileStorage) -> None:
    assert await file_storage.list_students() == []
    assert await file_storage.get_sheet("2024-01-10") is None
    assert await file_storage.list_sheets() == []
    assert await file_storage.check_connection() is True


async def test_write_lock_belongs_to_running_loop(tmp_path: pathlib.Path) -> None:
    """The lock is made by open(), so a backend built before the loop starts still works."""
    # Arrange
    backend = FileStorage(str(tmp_path / "data"))
    assert backend._write_lock is None
    # Act
    await backend.open()
    await asyncio.gather(*(backend.upsert_sheet(f"2024-01-1{i}", []) for i in range(3)))
    # Assert
    assert isinstance(backend._write_lock, asyncio.Lock)
    assert await backend.list_dates() == ["2024-01-10", "2024-01-11", "2024-01-12"]
