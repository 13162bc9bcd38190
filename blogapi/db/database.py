from tenacity import retry, stop_after_attempt, wait_exponential
from typing import Annotated
from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine, text
from blogapi.core.config import settings
from blogapi.core.logging import LogContext

logger = LogContext(__name__)


class DatabaseConnectionError(Exception):
    """Raised when database connection fails after retries"""

    pass


def _engine_kwargs(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
def create_db_engine(database_url: str = settings.DATABASE_URL) -> Engine:
    """Create the engine and check it can connect, retrying with backoff"""
    db_engine = create_engine(database_url, echo=False, **_engine_kwargs(database_url))
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1")).scalar()
    except Exception as e:
        logger.warning(
            "Database connection attempt failed",
            extra={"error": str(e), "error_type": e.__class__.__name__},
        )
        db_engine.dispose()
        raise
    return db_engine


try:
    engine = create_db_engine()
except Exception as e:
    logger.error(
        "Failed to initialize database engine",
        extra={"error": str(e), "error_type": e.__class__.__name__},
    )
    engine = None


def get_session():
    """Yield a database session, rolling back on error"""
    if engine is None:
        raise DatabaseConnectionError("Database engine failed to initialize")

    with Session(engine) as session:
        try:
            yield session
        except Exception as e:
            session.rollback()
            logger.error(
                "Database session error",
                extra={"error": str(e), "error_type": e.__class__.__name__},
            )
            raise


SessionDep = Annotated[Session, Depends(get_session)]
