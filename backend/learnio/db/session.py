"""Engine and session helpers for the database storage mode."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from .models import Base

_engine: Optional[Engine] = None


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    kwargs: dict[str, object] = {
        "echo": echo,
        "future": True,
        "pool_pre_ping": True,
    }
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


def get_engine(settings: Optional[Settings] = None) -> Engine:
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        if not settings.database_url:
            raise RuntimeError("LEARNIO_DATABASE_URL must be configured when LEARNIO_STORAGE_MODE=database.")
        _engine = build_engine(settings.database_url, echo=settings.database_echo)
    return _engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


@contextmanager
def session_scope(factory: sessionmaker[Session], *, commit: bool = True) -> Generator[Session, None, None]:
    session = factory()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


__all__ = [
    "build_engine",
    "dispose_engine",
    "get_engine",
    "make_session_factory",
    "session_scope",
]
