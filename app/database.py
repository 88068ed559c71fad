from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.config import get_settings

DATABASE_URL = get_settings().DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    """SQLite needs its directory to exist and must allow use across threads."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {}
    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return {"connect_args": {"check_same_thread": False}}


# SQLAlchemy engine & session factory
engine = create_engine(
    DATABASE_URL,
    future=True,
    echo=False,  # set True if you want to see SQL in terminal
    **_engine_kwargs(DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)

Base = declarative_base()


def init_db() -> None:
    """
    Import models and create tables if they don't exist.
    """
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """
    FastAPI dependency that gives you a DB session and cleans it up after.
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
