import uuid

from sqlalchemy import Column, String, DateTime, func

from attendance_api.database import Base, exact_string


def new_id() -> str:
    return uuid.uuid4().hex


class StudentRow(Base):
    __tablename__ = "students"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, default="", index=True)
    student_id = Column(exact_string(100), nullable=False, unique=True, index=True)
    class_name = Column("class", String(100), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
