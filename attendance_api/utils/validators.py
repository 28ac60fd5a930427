from collections import Counter
from typing import Any, List, Tuple

from attendance_api.exceptions import ValidationError
from attendance_api.schemas.attendance import AttendanceRecord, AttendanceStatus
from attendance_api.schemas.student_schema import StudentBase
from attendance_api.utils.dates import parse_calendar_date

ALLOWED_STATUSES = tuple(status.value for status in AttendanceStatus)


def clean_text(value: Any) -> str:
    """Trimmed string form of a JSON scalar, '' for null"""
    if value is None:
        return ""
    return str(value).strip()


def parse_students(payload: Any, strict: bool) -> List[StudentBase]:
    """
    Turn a roster request body into students.

    Lax mode only requires an array of objects; strict mode also requires
    every student to carry a name, studentId and class.
    """
    if not isinstance(payload, list):
        raise ValidationError("Students data should be an array")

    non_objects = sum(1 for item in payload if not isinstance(item, dict))
    if non_objects:
        raise ValidationError("Every student must be a JSON object", invalidCount=non_objects)

    students = [
        StudentBase(
            name=clean_text(item.get("name")),
            studentId=clean_text(item.get("studentId")),
            class_name=clean_text(item.get("class")),
        )
        for item in payload
    ]

    if strict:
        invalid = [s for s in students if not (s.name and s.studentId and s.class_name)]
        if invalid:
            raise ValidationError(
                "All students must have name, studentId, and class fields",
                invalidCount=len(invalid)
            )

    return students


def find_duplicate_student_ids(students: List[StudentBase]) -> List[str]:
    counts = Counter(student.studentId for student in students)
    return sorted(student_id for student_id, count in counts.items() if count > 1)


def parse_attendance(payload: Any, strict: bool) -> Tuple[str, List[AttendanceRecord]]:
    """
    Turn an attendance request body into ``(date, records)``.

    Every record needs a name and a status. Strict mode restricts the status
    to Present/Absent/Late and the date to a real calendar date. Missing
    timestamps are left as None for the caller to fill in.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Date and records array are required")

    sheet_date = clean_text(payload.get("date"))
    raw_records = payload.get("records")
    if not sheet_date or not isinstance(raw_records, list):
        raise ValidationError("Date and records array are required")

    if strict and parse_calendar_date(sheet_date) is None:
        raise ValidationError("Date must be a calendar date in YYYY-MM-DD format", date=sheet_date)

    records = []
    invalid = 0
    for item in raw_records:
        if not isinstance(item, dict):
            invalid += 1
            continue
        name = clean_text(item.get("name"))
        status = clean_text(item.get("status"))
        if not name or not status:
            invalid += 1
            continue
        records.append(AttendanceRecord(
            name=name,
            status=status,
            timestamp=clean_text(item.get("timestamp")) or None
        ))

    if invalid:
        raise ValidationError("All records must have name and status fields", invalidCount=invalid)

    if strict:
        bad_status = [record for record in records if record.status not in ALLOWED_STATUSES]
        if bad_status:
            raise ValidationError(
                f"Record status must be one of {', '.join(ALLOWED_STATUSES)}",
                invalidCount=len(bad_status)
            )

    return sheet_date, records


def parse_student_identifiers(payload: Any) -> List[str]:
    identifiers = payload.get("studentIds") if isinstance(payload, dict) else None
    if identifiers is None or not isinstance(identifiers, list):
        raise ValidationError("studentIds array is required in request body")
    if not identifiers:
        raise ValidationError("studentIds array cannot be empty")
    return [clean_text(identifier) for identifier in identifiers]
