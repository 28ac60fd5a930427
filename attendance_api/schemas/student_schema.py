from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StudentBase(BaseModel):
    name: str = ""
    studentId: str = ""
    class_name: str = Field("", alias="class")

    class Config:
        populate_by_name = True


class StudentResponse(StudentBase):
    id: str
    createdAt: Optional[datetime] = None

    def summary(self) -> StudentBase:
        return StudentBase(name=self.name, studentId=self.studentId, class_name=self.class_name)


class SaveStudentsResponse(BaseModel):
    success: bool
    message: str
    count: int
    timestamp: str


class DeleteAllStudentsResponse(BaseModel):
    success: bool
    message: str
    deletedCount: int
    timestamp: str


class DeleteStudentResponse(BaseModel):
    success: bool
    message: str
    deletedStudent: StudentBase
    timestamp: str


class BatchDeleteResponse(BaseModel):
    success: bool
    message: str
    deletedCount: int
    notFoundCount: int
    deletedStudents: List[StudentBase]
    timestamp: str
