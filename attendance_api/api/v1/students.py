import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends

from attendance_api.dependencies import get_roster_store
from attendance_api.exceptions import ApiError, InternalError
from attendance_api.schemas.student_schema import (
    BatchDeleteResponse,
    DeleteAllStudentsResponse,
    DeleteStudentResponse,
    SaveStudentsResponse,
    StudentResponse,
)
from attendance_api.services.roster import RosterStore
from attendance_api.utils.dates import utc_now_iso

# Setup logger
logger = logging.getLogger(__name__)

str_router = APIRouter(prefix="/api/students", tags=["students"])


@str_router.get("", response_model=List[StudentResponse])
async def list_students(roster: RosterStore = Depends(get_roster_store)):
    """Get every student on the roster"""
    try:
        students = await roster.list_students()
        logger.debug(f"Returning {len(students)} students")
        return students
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error reading students: {e}", exc_info=True)
        raise InternalError("Error reading students data")


@str_router.post("", response_model=SaveStudentsResponse)
async def save_students(
        payload: Any = Body(None),
        roster: RosterStore = Depends(get_roster_store)
):
    """
    Replace the whole roster.

    - **payload**: array of `{name, studentId, class}` objects
    """
    try:
        count = await roster.replace_roster(payload)
        return SaveStudentsResponse(
            success=True,
            message="Students saved successfully",
            count=count,
            timestamp=utc_now_iso()
        )
    except ApiError as e:
        logger.warning(f"Roster save rejected: {e.message}")
        raise
    except Exception as e:
        logger.error(f"Error saving students: {e}", exc_info=True)
        raise InternalError("Error saving students data")


@str_router.delete("", response_model=DeleteAllStudentsResponse)
async def delete_all_students(roster: RosterStore = Depends(get_roster_store)):
    """Delete every student"""
    try:
        deleted_count = await roster.delete_all()
        return DeleteAllStudentsResponse(
            success=True,
            message="All students deleted successfully",
            deletedCount=deleted_count,
            timestamp=utc_now_iso()
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error deleting all students: {e}", exc_info=True)
        raise InternalError("Error deleting all students")


@str_router.delete("/batch/delete", response_model=BatchDeleteResponse)
async def delete_students_batch(
        payload: Any = Body(None),
        roster: RosterStore = Depends(get_roster_store)
):
    """
    Delete several students at once.

    - **studentIds**: storage ids or studentId values; unknown ones are
      reported in `notFoundCount`
    """
    try:
        result = await roster.delete_batch(payload)
        return BatchDeleteResponse(
            success=True,
            message=f"{result.deleted_count} student(s) deleted successfully",
            deletedCount=result.deleted_count,
            notFoundCount=result.not_found_count,
            deletedStudents=result.deleted_students,
            timestamp=utc_now_iso()
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error deleting multiple students: {e}", exc_info=True)
        raise InternalError("Error deleting students")


@str_router.delete("/{student_id}", response_model=DeleteStudentResponse)
async def delete_student(student_id: str, roster: RosterStore = Depends(get_roster_store)):
    """
    Delete one student.

    - **student_id**: the storage id, or the student's studentId
    """
    try:
        student = await roster.delete_one(student_id)
        return DeleteStudentResponse(
            success=True,
            message="Student deleted successfully",
            deletedStudent=student,
            timestamp=utc_now_iso()
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Error deleting student {student_id}: {e}", exc_info=True)
        raise InternalError("Error deleting student")
