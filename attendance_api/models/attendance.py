from sqlalchemy import Column, String, DateTime, JSON, func

from attendance_api.database import Base, exact_string


class AttendanceSheetRow(Base):
    __tablename__ = "attendance_sheets"

    id = Column(String(32), primary_key=True)
    date = Column(exact_string(32), nullable=False, unique=True, index=True)
    # [{"name": ..., "status": ..., "timestamp": ...}, ...] in submission order
    records = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
