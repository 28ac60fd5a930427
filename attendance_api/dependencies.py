from fastapi import Request

from attendance_api.config import Settings
from attendance_api.database import Database
from attendance_api.services.attendance import AttendanceStore
from attendance_api.services.roster import RosterStore
from attendance_api.storage.base import StorageBackend
from attendance_api.storage.file_storage import FileStorage
from attendance_api.storage.sql_storage import SqlStorage


def create_storage(settings: Settings) -> StorageBackend:
    """Build the configured backend; it is opened later by the app lifespan"""
    if settings.storage_backend == "database":
        database = Database(settings.sqlalchemy_url, echo=settings.db_echo)
        return SqlStorage(
            database,
            connect_retries=settings.db_connect_retries,
            retry_delay=settings.db_retry_delay,
        )
    return FileStorage(settings.data_dir)


def get_roster_store(request: Request) -> RosterStore:
    return request.app.state.roster_store


def get_attendance_store(request: Request) -> AttendanceStore:
    return request.app.state.attendance_store
