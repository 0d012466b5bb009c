import logging
import os
from collections.abc import Generator

from sqlalchemy import text
from sqlmodel import Session, SQLModel, create_engine

from maintenance_api.config import settings

logger = logging.getLogger(__name__)

# Database pool configuration constants
POOL_SIZE_DEFAULT = 10
POOL_SIZE_MIN = 1
POOL_SIZE_MAX = 50

MAX_OVERFLOW_DEFAULT = 20
MAX_OVERFLOW_MIN = 0
MAX_OVERFLOW_MAX = 100

POOL_TIMEOUT_DEFAULT = 30
POOL_RECYCLE_DEFAULT = 300


class Database:
    """Database connection manager"""

    def __init__(self, database_url: str | None = None):
        self._database_url = database_url
        self._engine = None

    @property
    def database_url(self) -> str:
        return self._database_url or settings.database_url

    def get_engine(self):
        """Get SQLModel engine for database operations"""
        if self._engine is None:
            database_url = self.database_url

            if database_url.startswith("sqlite"):
                # SQLite connections are shared with the threadpool FastAPI uses
                # for sync dependencies
                self._engine = create_engine(
                    database_url,
                    echo=settings.debug,
                    connect_args={"check_same_thread": False},
                )
                logger.info("✅ SQLite engine initialized")
                return self._engine

            pool_size = int(os.getenv("DB_POOL_SIZE", str(POOL_SIZE_DEFAULT)))
            max_overflow = int(os.getenv("DB_MAX_OVERFLOW", str(MAX_OVERFLOW_DEFAULT)))
            pool_timeout = int(os.getenv("DB_POOL_TIMEOUT", str(POOL_TIMEOUT_DEFAULT)))
            pool_recycle = int(os.getenv("DB_POOL_RECYCLE", str(POOL_RECYCLE_DEFAULT)))

            # Validate pool settings
            if pool_size < POOL_SIZE_MIN or pool_size > POOL_SIZE_MAX:
                logger.warning(
                    f"Invalid pool_size: {pool_size}, using default: {POOL_SIZE_DEFAULT}"
                )
                pool_size = POOL_SIZE_DEFAULT
            if max_overflow < MAX_OVERFLOW_MIN or max_overflow > MAX_OVERFLOW_MAX:
                logger.warning(
                    f"Invalid max_overflow: {max_overflow}, using default: {MAX_OVERFLOW_DEFAULT}"
                )
                max_overflow = MAX_OVERFLOW_DEFAULT

            self._engine = create_engine(
                database_url,
                echo=settings.debug,  # Show SQL queries in debug mode
                pool_pre_ping=True,
                pool_recycle=pool_recycle,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
            )

            logger.info(
                f"✅ Database pool configured: pool_size={pool_size}, "
                f"max_overflow={max_overflow}, pool_timeout={pool_timeout}s"
            )
        return self._engine

    def create_all(self) -> None:
        """Create every table registered on the SQLModel metadata"""
        # Registers the table classes on SQLModel.metadata
        from maintenance_api import models  # noqa: F401

        SQLModel.metadata.create_all(self.get_engine())
        logger.info("✅ Database tables ensured")

    def get_session(self) -> Generator[Session, None, None]:
        """Get database session"""
        engine = self.get_engine()
        with Session(engine) as session:
            yield session

    async def health_check(self) -> bool:
        """Check database connection health"""
        try:
            with self.get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"❌ Database health check failed: {e}")
            return False


# Global database instance
db = Database()


# Dependency for FastAPI
def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency to get database session"""
    yield from db.get_session()
