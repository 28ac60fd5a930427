import logging
from typing import Any, List, Tuple

from attendance_api.exceptions import NotFoundError
from attendance_api.schemas.attendance import (
    AttendanceMatch,
    AttendanceOverview,
    AttendanceSheet,
    AttendanceStatus,
    AttendanceSummary,
)
from attendance_api.storage.base import StorageBackend
from attendance_api.utils.dates import date_sort_key, utc_now_iso
from attendance_api.utils.validators import parse_attendance

logger = logging.getLogger(__name__)


def attendance_rate(present: int, total: int) -> int:
    """Percentage of ``present`` in ``total``, rounded half up; 0 when total is 0"""
    if total <= 0:
        return 0
    return (200 * present + total) // (2 * total)


def count_present(sheet: AttendanceSheet) -> int:
    return sum(1 for record in sheet.records if record.status == AttendanceStatus.PRESENT.value)


def summarize(sheet: AttendanceSheet) -> AttendanceSummary:
    total = len(sheet.records)
    present = count_present(sheet)
    return AttendanceSummary(
        date=sheet.date,
        totalStudents=total,
        present=present,
        absent=total - present,
        attendanceRate=attendance_rate(present, total),
    )


class AttendanceStore:
    """
    Attendance sheets keyed by date.

    Summaries, search and the overview are derived on every call from a full
    read of the stored sheets; none of them is persisted.
    """

    def __init__(self, storage: StorageBackend, strict: bool = True):
        self.storage = storage
        self.strict = strict

    async def upsert_sheet(self, payload: Any) -> Tuple[str, int]:
        sheet_date, records = parse_attendance(payload, strict=self.strict)

        now = utc_now_iso()
        for record in records:
            if not record.timestamp:
                record.timestamp = now

        record_count = await self.storage.upsert_sheet(sheet_date, records)
        logger.info(f"Saved attendance for {sheet_date}: {record_count} records")
        return sheet_date, record_count

    async def get_dates(self) -> List[str]:
        dates = await self.storage.list_dates()
        return sorted(set(dates), reverse=True)

    async def get_sheet(self, sheet_date: str) -> AttendanceSheet:
        sheet = await self.storage.get_sheet(sheet_date.strip())
        if sheet is None:
            raise NotFoundError("Attendance record not found for this date")
        return sheet

    async def list_summaries(self) -> List[AttendanceSummary]:
        sheets = await self.storage.list_sheets()
        summaries = [summarize(sheet) for sheet in sheets]
        summaries.sort(key=lambda summary: date_sort_key(summary.date), reverse=True)
        return summaries

    async def search_by_name(self, query: str) -> List[AttendanceMatch]:
        needle = query.strip().lower()
        sheets = await self.storage.list_sheets()
        sheets.sort(key=lambda sheet: date_sort_key(sheet.date), reverse=True)

        matches = [
            AttendanceMatch(
                date=sheet.date,
                name=record.name,
                status=record.status,
                timestamp=record.timestamp,
            )
            for sheet in sheets
            for record in sheet.records
            if needle in record.name.lower()
        ]
        logger.debug(f"Search {needle!r}: {len(matches)} matches across {len(sheets)} sheets")
        return matches

    async def overview(self) -> AttendanceOverview:
        sheets = await self.storage.list_sheets()

        total_students = sum(len(sheet.records) for sheet in sheets)
        total_present = sum(count_present(sheet) for sheet in sheets)

        return AttendanceOverview(
            totalRecords=len(sheets),
            averageAttendance=attendance_rate(total_present, total_students),
            totalClasses=len(sheets),
            totalStudents=total_students,
            totalPresent=total_present,
        )
