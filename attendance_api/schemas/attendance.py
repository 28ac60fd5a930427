from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class AttendanceStatus(str, Enum):
    """Statuses accepted in strict validation mode"""
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class AttendanceRecord(BaseModel):
    name: str
    status: str
    timestamp: Optional[str] = None


class AttendanceSheet(BaseModel):
    date: str
    records: List[AttendanceRecord] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SaveAttendanceResponse(BaseModel):
    success: bool
    message: str
    date: str
    recordCount: int
    timestamp: str


class AttendanceSummary(BaseModel):
    date: str
    totalStudents: int
    present: int
    absent: int
    attendanceRate: int


class AttendanceMatch(BaseModel):
    date: str
    name: str
    status: str
    timestamp: Optional[str] = None


class AttendanceOverview(BaseModel):
    totalRecords: int
    averageAttendance: int
    totalClasses: int
    totalStudents: int
    totalPresent: int
