"""Test the table definitions of the database backend."""

import re

from sqlalchemy.dialects import mysql, sqlite
from sqlalchemy.schema import CreateTable

from attendance_api.models.attendance import AttendanceSheetRow
from attendance_api.models.student import StudentRow


def ddl(table, dialect) -> str:
    return str(CreateTable(table).compile(dialect=dialect))


def test_unique_keys_compare_exactly_on_mysql() -> None:
    """studentId and date must not fold case or accents under MySQL's default collation."""
    # Act
    students = ddl(StudentRow.__table__, mysql.dialect())
    sheets = ddl(AttendanceSheetRow.__table__, mysql.dialect())
    # Assert
    assert re.search(r"`?student_id`? VARCHAR\(100\) COLLATE utf8mb4_bin", students)
    assert re.search(r"`?date`? VARCHAR\(32\) COLLATE utf8mb4_bin", sheets)


def test_other_dialects_keep_plain_varchar() -> None:
    students = ddl(StudentRow.__table__, sqlite.dialect())
    assert "COLLATE" not in students
    assert re.search(r"student_id VARCHAR\(100\)", students)
