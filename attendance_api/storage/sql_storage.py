import asyncio
import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from attendance_api.database import Database
from attendance_api.exceptions import StorageError
from attendance_api.models.attendance import AttendanceSheetRow
from attendance_api.models.student import StudentRow, new_id
from attendance_api.schemas.attendance import AttendanceRecord, AttendanceSheet
from attendance_api.schemas.student_schema import StudentBase, StudentResponse
from attendance_api.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class SqlStorage(StorageBackend):
    """Async SQLAlchemy backend (MySQL via aiomysql, or any async URL)"""

    name = "database"

    def __init__(self, database: Database, connect_retries: int = 3, retry_delay: float = 5.0):
        self.database = database
        self.connect_retries = max(1, connect_retries)
        self.retry_delay = retry_delay

    async def open(self) -> None:
        if not await self.database.connect():
            raise StorageError("Could not create database engine")

        for attempt in range(1, self.connect_retries + 1):
            try:
                await self.database.create_tables()
                return
            except (SQLAlchemyError, OSError) as e:
                logger.error(
                    f"Database connection failed (attempt {attempt}/{self.connect_retries}): {e}"
                )
                if attempt == self.connect_retries:
                    raise
                await asyncio.sleep(self.retry_delay)

    async def close(self) -> None:
        await self.database.disconnect()

    async def check_connection(self) -> bool:
        return await self.database.check_connection()

    @staticmethod
    def _to_student(row: StudentRow) -> StudentResponse:
        return StudentResponse(
            id=row.id,
            name=row.name,
            studentId=row.student_id,
            class_name=row.class_name,
            createdAt=row.created_at,
        )

    @staticmethod
    def _to_sheet(row: AttendanceSheetRow) -> AttendanceSheet:
        return AttendanceSheet(
            date=row.date,
            records=row.records or [],
            createdAt=row.created_at,
            updatedAt=row.updated_at,
        )

    # Roster

    async def list_students(self) -> List[StudentResponse]:
        async with self.database.get_session() as session:
            result = await session.execute(select(StudentRow).order_by(StudentRow.name))
            return [self._to_student(row) for row in result.scalars().all()]

    async def replace_students(self, students: List[StudentBase]) -> int:
        async with self.database.get_session() as session:
            try:
                await session.execute(delete(StudentRow))
                session.add_all([
                    StudentRow(
                        id=new_id(),
                        name=student.name,
                        student_id=student.studentId,
                        class_name=student.class_name,
                    )
                    for student in students
                ])
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database error replacing roster: {e}", exc_info=True)
                await session.rollback()
                raise

        return len(students)

    async def delete_all_students(self) -> int:
        async with self.database.get_session() as session:
            try:
                result = await session.execute(delete(StudentRow))
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
            return result.rowcount

    async def delete_students(self, identifiers: List[str]) -> List[Optional[StudentResponse]]:
        deleted: List[Optional[StudentResponse]] = []

        async with self.database.get_session() as session:
            try:
                for identifier in identifiers:
                    row = await session.get(StudentRow, identifier)
                    if row is None:
                        result = await session.execute(
                            select(StudentRow).where(StudentRow.student_id == identifier)
                        )
                        row = result.scalar_one_or_none()

                    if row is None:
                        deleted.append(None)
                        continue

                    deleted.append(self._to_student(row))
                    await session.delete(row)
                    await session.flush()

                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise

        return deleted

    # Attendance

    def _upsert_statement(self, sheet_date: str, records: List[AttendanceRecord]):
        values = {
            "id": new_id(),
            "date": sheet_date,
            "records": [record.model_dump() for record in records],
            "updated_at": func.now(),
        }
        dialect = self.database.dialect_name

        if dialect == "mysql":
            stmt = mysql_insert(AttendanceSheetRow).values(**values)
            return stmt.on_duplicate_key_update(records=stmt.inserted.records, updated_at=func.now())

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite_insert if dialect == "sqlite" else postgresql_insert
            stmt = insert(AttendanceSheetRow).values(**values)
            return stmt.on_conflict_do_update(
                index_elements=["date"],
                set_={"records": stmt.excluded.records, "updated_at": func.now()},
            )

        raise StorageError(f"Attendance upsert is not supported on {dialect}")

    async def upsert_sheet(self, sheet_date: str, records: List[AttendanceRecord]) -> int:
        stmt = self._upsert_statement(sheet_date, records)

        async with self.database.get_session() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database error saving sheet {sheet_date}: {e}", exc_info=True)
                await session.rollback()
                raise

        return len(records)

    async def list_dates(self) -> List[str]:
        async with self.database.get_session() as session:
            result = await session.execute(select(AttendanceSheetRow.date))
            return list(result.scalars().all())

    async def get_sheet(self, sheet_date: str) -> Optional[AttendanceSheet]:
        async with self.database.get_session() as session:
            result = await session.execute(
                select(AttendanceSheetRow).where(AttendanceSheetRow.date == sheet_date)
            )
            row = result.scalar_one_or_none()
            return self._to_sheet(row) if row else None

    async def list_sheets(self) -> List[AttendanceSheet]:
        async with self.database.get_session() as session:
            result = await session.execute(select(AttendanceSheetRow))
            return [self._to_sheet(row) for row in result.scalars().all()]
