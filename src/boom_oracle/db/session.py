"""SQLAlchemy engine and session setup."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from boom_oracle.core.log import get_logger

logger = get_logger(__name__)


def make_engine(database_url: str) -> Engine:
    """Create an engine; for sqlite files the parent directory is created."""
    url = make_url(database_url)
    kwargs = {"future": True, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    from boom_oracle.db.models import Base

    Base.metadata.create_all(engine)
    logger.info(f"Database initialized: {engine.url.render_as_string(hide_password=True)}")
