import logging
from dataclasses import dataclass, field
from typing import Any, List

from attendance_api.exceptions import ConflictError, NotFoundError
from attendance_api.schemas.student_schema import StudentBase, StudentResponse
from attendance_api.storage.base import StorageBackend
from attendance_api.utils.validators import (
    find_duplicate_student_ids,
    parse_student_identifiers,
    parse_students,
)

logger = logging.getLogger(__name__)


@dataclass
class BatchDeleteResult:
    requested: int
    deleted_students: List[StudentBase] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_students)

    @property
    def not_found_count(self) -> int:
        return self.requested - self.deleted_count


class RosterStore:
    """The current student roster, replaced wholesale on every save"""

    def __init__(self, storage: StorageBackend, strict: bool = True):
        self.storage = storage
        self.strict = strict

    async def list_students(self) -> List[StudentResponse]:
        return await self.storage.list_students()

    async def replace_roster(self, payload: Any) -> int:
        students = parse_students(payload, strict=self.strict)

        if self.strict:
            duplicates = find_duplicate_student_ids(students)
            if duplicates:
                logger.warning(f"Roster rejected, duplicate student IDs: {duplicates}")
                raise ConflictError("Duplicate student ID found", duplicates=duplicates)

        count = await self.storage.replace_students(students)
        logger.info(f"Roster replaced with {count} students")
        return count

    async def delete_all(self) -> int:
        deleted_count = await self.storage.delete_all_students()
        logger.info(f"Deleted all students ({deleted_count})")
        return deleted_count

    async def delete_one(self, identifier: str) -> StudentBase:
        deleted = await self.storage.delete_students([identifier])
        student = deleted[0] if deleted else None
        if student is None:
            raise NotFoundError("Student not found", message=f"No student found with ID: {identifier}")

        logger.info(f"Deleted student {student.studentId} ({student.name})")
        return student.summary()

    async def delete_batch(self, payload: Any) -> BatchDeleteResult:
        identifiers = parse_student_identifiers(payload)
        deleted = await self.storage.delete_students(identifiers)

        result = BatchDeleteResult(
            requested=len(identifiers),
            deleted_students=[student.summary() for student in deleted if student is not None]
        )
        logger.info(
            f"Batch delete: {result.deleted_count} deleted, {result.not_found_count} not found"
        )
        return result
