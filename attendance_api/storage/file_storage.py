import asyncio
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from attendance_api.exceptions import StorageError, ValidationError
from attendance_api.schemas.attendance import AttendanceRecord, AttendanceSheet
from attendance_api.schemas.student_schema import StudentBase, StudentResponse
from attendance_api.storage.base import StorageBackend
from attendance_api.utils.dates import utc_now_iso
from attendance_api.utils.validators import find_duplicate_student_ids

logger = logging.getLogger(__name__)

STUDENTS_FILE = "students.json"
SHEET_PREFIX = "attendance_"
SHEET_SUFFIX = ".json"


class FileStorage(StorageBackend):
    """
    JSON-file backend.

    Layout under ``data_dir``:
        students.json               the whole roster
        attendance_<date>.json      one sheet per date

    Writes go to a temporary file that is then renamed over the target, so a
    file is either fully written or untouched. Read-modify-write cycles are
    serialised by a lock on this instance.
    """

    name = "file"

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self._write_lock: Optional[asyncio.Lock] = None

    async def open(self) -> None:
        # Bound to the running loop, not the one current at construction
        self._write_lock = asyncio.Lock()
        await asyncio.to_thread(self.data_dir.mkdir, parents=True, exist_ok=True)
        logger.info(f"File storage ready at {self.data_dir.resolve()}")

    async def close(self) -> None:
        logger.info("File storage closed")

    async def check_connection(self) -> bool:
        return self.data_dir.is_dir() and os.access(self.data_dir, os.W_OK)

    # File helpers

    @property
    def students_path(self) -> Path:
        return self.data_dir / STUDENTS_FILE

    def sheet_path(self, sheet_date: str) -> Path:
        if sheet_date in ("", ".", "..") or any(ch in sheet_date for ch in ("/", "\\", "\0")):
            raise ValidationError("Invalid attendance date", date=sheet_date)
        return self.data_dir / f"{SHEET_PREFIX}{sheet_date}{SHEET_SUFFIX}"

    def _sheet_paths(self) -> List[Path]:
        return sorted(self.data_dir.glob(f"{SHEET_PREFIX}*{SHEET_SUFFIX}"))

    @staticmethod
    def _read_json(path: Path) -> Optional[Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _load_students(self) -> List[Dict[str, Any]]:
        return self._read_json(self.students_path) or []

    @staticmethod
    def _to_student(doc: Dict[str, Any]) -> StudentResponse:
        return StudentResponse(
            id=doc["id"],
            name=doc.get("name", ""),
            studentId=doc.get("studentId", ""),
            class_name=doc.get("class", ""),
            createdAt=doc.get("createdAt"),
        )

    # Roster

    async def list_students(self) -> List[StudentResponse]:
        docs = await asyncio.to_thread(self._load_students)
        return [self._to_student(doc) for doc in docs]

    async def replace_students(self, students: List[StudentBase]) -> int:
        duplicates = find_duplicate_student_ids(students)
        if duplicates:
            raise StorageError("studentId must be unique", duplicates=duplicates)

        created_at = utc_now_iso()
        docs = [
            {
                "id": uuid.uuid4().hex,
                "name": student.name,
                "studentId": student.studentId,
                "class": student.class_name,
                "createdAt": created_at,
            }
            for student in students
        ]

        async with self._write_lock:
            await asyncio.to_thread(self._write_json, self.students_path, docs)

        logger.debug(f"Wrote {len(docs)} students to {self.students_path}")
        return len(docs)

    async def delete_all_students(self) -> int:
        async with self._write_lock:
            docs = await asyncio.to_thread(self._load_students)
            await asyncio.to_thread(self._write_json, self.students_path, [])
        return len(docs)

    async def delete_students(self, identifiers: List[str]) -> List[Optional[StudentResponse]]:
        async with self._write_lock:
            docs = await asyncio.to_thread(self._load_students)
            deleted: List[Optional[StudentResponse]] = []

            for identifier in identifiers:
                index = next((i for i, doc in enumerate(docs) if doc.get("id") == identifier), None)
                if index is None:
                    index = next((i for i, doc in enumerate(docs) if doc.get("studentId") == identifier), None)
                deleted.append(self._to_student(docs.pop(index)) if index is not None else None)

            if any(deleted):
                await asyncio.to_thread(self._write_json, self.students_path, docs)

        return deleted

    # Attendance

    async def upsert_sheet(self, sheet_date: str, records: List[AttendanceRecord]) -> int:
        path = self.sheet_path(sheet_date)
        now = utc_now_iso()

        async with self._write_lock:
            existing = await asyncio.to_thread(self._read_json, path)
            doc = {
                "date": sheet_date,
                "records": [record.model_dump() for record in records],
                "createdAt": existing.get("createdAt", now) if existing else now,
                "updatedAt": now,
            }
            await asyncio.to_thread(self._write_json, path, doc)

        logger.debug(f"{'Replaced' if existing else 'Created'} sheet {path.name}")
        return len(doc["records"])

    async def list_dates(self) -> List[str]:
        paths = await asyncio.to_thread(self._sheet_paths)
        return [path.name[len(SHEET_PREFIX):-len(SHEET_SUFFIX)] for path in paths]

    async def get_sheet(self, sheet_date: str) -> Optional[AttendanceSheet]:
        doc = await asyncio.to_thread(self._read_json, self.sheet_path(sheet_date))
        return AttendanceSheet.model_validate(doc) if doc else None

    async def list_sheets(self) -> List[AttendanceSheet]:
        paths = await asyncio.to_thread(self._sheet_paths)
        docs = await asyncio.gather(*(asyncio.to_thread(self._read_json, path) for path in paths))
        # A sheet file removed between the listing and the read is skipped
        return [AttendanceSheet.model_validate(doc) for doc in docs if doc]
