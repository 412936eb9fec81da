"""Database utilities for the Learnio client storage."""

from .models import Base, ClientStorageEntryModel
from .session import build_engine, dispose_engine, get_engine, make_session_factory, session_scope

__all__ = [
    "Base",
    "ClientStorageEntryModel",
    "build_engine",
    "dispose_engine",
    "get_engine",
    "make_session_factory",
    "session_scope",
]
