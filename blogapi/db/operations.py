from sqlmodel import SQLModel, Session, select
from blogapi.auth.security import get_password_hash
from blogapi.constants import Role
from blogapi.core.config import settings
from blogapi.core.logging import LogContext
from blogapi.db.database import engine, DatabaseConnectionError
from blogapi.models.db_models import Categories, Users

logger = LogContext(__name__)


def create_db_and_tables():
    if engine is None:
        raise DatabaseConnectionError(
            "Cannot create tables: database engine not initialized"
        )
    SQLModel.metadata.create_all(engine)


def seed_defaults(session: Session):
    """Seed a default category and the bootstrap admin if not already present"""
    if not session.exec(select(Categories)).first():
        session.add(
            Categories(name="General", description="General articles", tag="general")
        )
        session.commit()
        logger.info("Seeded default category")

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        email = settings.ADMIN_EMAIL.strip().lower()
        existing = session.exec(select(Users).where(Users.email == email)).first()
        if existing is None:
            session.add(
                Users(
                    name="Admin",
                    email=email,
                    role=Role.ADMIN,
                    password_hash=get_password_hash(settings.ADMIN_PASSWORD),
                )
            )
            session.commit()
            logger.info("Seeded admin user", extra={"email": email})


def initialize_db():
    """
    initialize database, create tables, and seed data
    """
    if engine is None:
        raise DatabaseConnectionError(
            "Cannot initialize database: engine not available"
        )

    try:
        create_db_and_tables()
        with Session(engine) as session:
            seed_defaults(session)

        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(
            "Database initialization failed",
            extra={"error": str(e), "error_type": e.__class__.__name__},
        )
        raise
