from abc import ABC, abstractmethod
from typing import List, Optional

from attendance_api.schemas.attendance import AttendanceRecord, AttendanceSheet
from attendance_api.schemas.student_schema import StudentBase, StudentResponse


class StorageBackend(ABC):
    """
    Persistence collaborator shared by the roster and attendance stores.

    Backends are opened once at application startup and closed at shutdown.
    Every read goes to the underlying storage; nothing is cached in process.
    """

    name = "abstract"

    @abstractmethod
    async def open(self) -> None:
        """Prepare the backend (directories, tables) for use"""

    @abstractmethod
    async def close(self) -> None:
        """Release connections and handles"""

    @abstractmethod
    async def check_connection(self) -> bool:
        """True when the backend can currently serve requests"""

    # Roster

    @abstractmethod
    async def list_students(self) -> List[StudentResponse]:
        ...

    @abstractmethod
    async def replace_students(self, students: List[StudentBase]) -> int:
        """Discard the current roster and store ``students``; returns the inserted count"""

    @abstractmethod
    async def delete_all_students(self) -> int:
        ...

    @abstractmethod
    async def delete_students(self, identifiers: List[str]) -> List[Optional[StudentResponse]]:
        """
        Delete one student per identifier, matching the storage id first and
        the studentId second. The result is aligned with ``identifiers``;
        None marks an identifier that matched nothing.
        """

    # Attendance

    @abstractmethod
    async def upsert_sheet(self, sheet_date: str, records: List[AttendanceRecord]) -> int:
        """Create or fully replace the sheet for ``sheet_date``; returns the stored record count"""

    @abstractmethod
    async def list_dates(self) -> List[str]:
        ...

    @abstractmethod
    async def get_sheet(self, sheet_date: str) -> Optional[AttendanceSheet]:
        ...

    @abstractmethod
    async def list_sheets(self) -> List[AttendanceSheet]:
        ...
