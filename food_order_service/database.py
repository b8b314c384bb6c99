import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """Создать движок БД с параметрами пула под конкретный диалект"""
    # Старые конфиги могут указывать asyncpg, код работает синхронно через psycopg2
    database_url = database_url.replace("postgresql+asyncpg://", "postgresql+psycopg2://")

    if database_url.startswith("sqlite"):
        # Сессия отдаётся зависимостью FastAPI и используется из другого потока
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=echo
    )


engine = build_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utcnow() -> datetime:
    """Текущее время в UTC без tzinfo (так хранятся все метки времени)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    """Dependency для получения сессии БД"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_connection() -> bool:
    """Проверка подключения к БД"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    finally:
        db.close()
