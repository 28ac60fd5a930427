import logging

from sqlalchemy import String, text
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def exact_string(length: int) -> String:
    """VARCHAR that compares byte for byte on MySQL, whose default collation folds case and accents"""
    return String(length).with_variant(
        mysql.VARCHAR(length, collation="utf8mb4_bin"), "mysql", "mariadb"
    )


class Database:
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine = None
        self.async_session = None
        self.is_connected = False

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def connect(self):
        """Create the async engine and session factory"""
        try:
            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,
                pool_recycle=3600,
                poolclass=NullPool
            )

            self.async_session = sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            self.is_connected = True
            logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")
            return True

        except Exception as e:
            logger.error(f"Error creating database engine: {e}")
            self.is_connected = False
            return False

    async def disconnect(self):
        """Dispose of the engine"""
        if self.engine:
            await self.engine.dispose()
            self.is_connected = False
            logger.info("Database connection closed")

    def get_session(self) -> AsyncSession:
        """Get async database session"""
        if not self.is_connected:
            raise RuntimeError("Database is not connected. Call connect() first.")
        return self.async_session()

    async def create_tables(self):
        """Create all tables defined in Base metadata"""
        # Registers the mapped classes on Base.metadata
        from attendance_api.models import attendance, student  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created successfully")

    async def check_connection(self) -> bool:
        if not self.is_connected:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database connection check failed: {e}")
            return False
