from pathlib import Path
from urllib.parse import unquote

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import get_settings

Base = declarative_base()
SessionLocal = sessionmaker(autoflush=False, autocommit=False, future=True)
engine: Engine | None = None


def _ensure_sqlite_parent(database_url: str) -> None:
    if not database_url.startswith("sqlite:///"):
        return
    raw = unquote(database_url[len("sqlite:///") :])
    if not raw or raw == ":memory:":
        return
    try:
        Path(raw).parent.mkdir(parents=True, exist_ok=True)
    except Exception:
        # If the parent dir can't be created, SQLite will fail later with a clearer error.
        pass


def configure_database(database_url: str) -> Engine:
    global engine
    if engine is not None:
        engine.dispose()
    _ensure_sqlite_parent(database_url)
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args, future=True)
    SessionLocal.configure(bind=engine)
    return engine


def init_db(database_url: str | None = None) -> Engine:
    from app import models  # noqa: F401 - register SQLAlchemy models before create_all

    active = configure_database(database_url or get_settings().database_url)
    Base.metadata.create_all(bind=active)
    return active


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
