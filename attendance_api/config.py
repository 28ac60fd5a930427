import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

STORAGE_BACKENDS = ("file", "database")
VALIDATION_MODES = ("strict", "lax")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration, read from the environment (and .env)"""
    storage_backend: str = "file"
    data_dir: str = "data"
    validation_mode: str = "strict"
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: str = "3306"
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "attendance"
    db_echo: bool = False
    db_connect_retries: int = 3
    db_retry_delay: float = 5.0
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False

    def __post_init__(self):
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {STORAGE_BACKENDS}, got {self.storage_backend!r}"
            )
        if self.validation_mode not in VALIDATION_MODES:
            raise ValueError(
                f"VALIDATION_MODE must be one of {VALIDATION_MODES}, got {self.validation_mode!r}"
            )

    @property
    def strict_validation(self) -> bool:
        return self.validation_mode == "strict"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            storage_backend=os.getenv("STORAGE_BACKEND", "file").strip().lower(),
            data_dir=os.getenv("DATA_DIR", "data"),
            validation_mode=os.getenv("VALIDATION_MODE", "strict").strip().lower(),
            database_url=os.getenv("DATABASE_URL") or None,
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=os.getenv("DB_PORT", "3306"),
            db_user=os.getenv("DB_USER", "root"),
            db_password=os.getenv("DB_PASSWORD", ""),
            db_name=os.getenv("DB_NAME", "attendance"),
            db_echo=_env_bool("DB_ECHO", False),
            db_connect_retries=int(os.getenv("DB_CONNECT_RETRIES", "3")),
            db_retry_delay=float(os.getenv("DB_RETRY_DELAY", "5")),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            reload=_env_bool("RELOAD", False),
        )
