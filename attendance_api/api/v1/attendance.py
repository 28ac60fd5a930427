import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends

from attendance_api.dependencies import get_attendance_store
from attendance_api.exceptions import ApiError, InternalError
from attendance_api.schemas.attendance import (
    AttendanceMatch,
    AttendanceOverview,
    AttendanceSheet,
    AttendanceSummary,
    SaveAttendanceResponse,
)
from attendance_api.services.attendance import AttendanceStore
from attendance_api.utils.dates import utc_now_iso

# Setup logging
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/attendance", tags=["attendance"])


@router.post("", response_model=SaveAttendanceResponse)
async def save_attendance(
        payload: Any = Body(None),
        store: AttendanceStore = Depends(get_attendance_store)
):
    """
    Save the attendance sheet for one date

    - Body is `{date, records: [{name, status, timestamp?}]}`
    - A sheet already stored for the date is replaced, not merged
    """
    try:
        sheet_date, record_count = await store.upsert_sheet(payload)
        return SaveAttendanceResponse(
            success=True,
            message="Attendance saved successfully",
            date=sheet_date,
            recordCount=record_count,
            timestamp=utc_now_iso()
        )
    except ApiError as e:
        logger.warning(f"Attendance save rejected: {e.message}")
        raise
    except Exception as e:
        logger.error(f"Error saving attendance: {e}", exc_info=True)
        raise InternalError("Error saving attendance data")


@router.get("/dates", response_model=List[str])
async def get_attendance_dates(store: AttendanceStore = Depends(get_attendance_store)):
    try:
        return await store.get_dates()
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error reading attendance dates: {e}", exc_info=True)
        raise InternalError("Error reading attendance data")


@router.get("/search/{student_name}", response_model=List[AttendanceMatch])
async def search_attendance(student_name: str, store: AttendanceStore = Depends(get_attendance_store)):
    """Case-insensitive substring search on record names across all dates, newest first"""
    try:
        return await store.search_by_name(student_name)
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error searching attendance for {student_name!r}: {e}", exc_info=True)
        raise InternalError("Error searching attendance data")


@router.get("/stats/overview", response_model=AttendanceOverview)
async def get_attendance_overview(store: AttendanceStore = Depends(get_attendance_store)):
    try:
        return await store.overview()
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error reading attendance stats: {e}", exc_info=True)
        raise InternalError("Error reading attendance statistics")


@router.get("/{sheet_date}", response_model=AttendanceSheet)
async def get_attendance_sheet(sheet_date: str, store: AttendanceStore = Depends(get_attendance_store)):
    try:
        return await store.get_sheet(sheet_date)
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error reading attendance for {sheet_date}: {e}", exc_info=True)
        raise InternalError("Error reading attendance data")


@router.get("", response_model=List[AttendanceSummary])
async def list_attendance_summaries(store: AttendanceStore = Depends(get_attendance_store)):
    """Per-date counts and attendance rate, newest date first"""
    try:
        return await store.list_summaries()
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error reading attendance summary: {e}", exc_info=True)
        raise InternalError("Error reading attendance data")
