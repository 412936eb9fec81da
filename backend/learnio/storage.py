"""Durable client storage and the Profile Store facade.

The Profile Store is the only component that touches durable storage. It owns
three logical keys: the cached profile record, the remember-me marker and the
selected language. Profile writes always replace the whole record.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings, get_settings
from .db.models import ClientStorageEntryModel
from .db.session import get_engine, make_session_factory, session_scope
from .errors import StorageError
from .i18n import Language, normalize_language
from .profiles import UserProfile

logger = logging.getLogger(__name__)

PROFILE_KEY = "learnio_user"
REMEMBER_ME_KEY = "learnio_remember_me"
LANGUAGE_KEY = "learnio_language"
_REQUIRED_PROFILE_FIELDS = ("id", "name", "role")


class StorageBackend(Protocol):
    def get(self, key: str) -> Optional[str]:  # pragma: no cover - protocol definition
        ...

    def set(self, key: str, value: str) -> None:  # pragma: no cover - protocol definition
        ...

    def delete(self, key: str) -> None:  # pragma: no cover - protocol definition
        ...


class JsonFileStorage:
    """Key/value storage persisted as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_unlocked(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Client storage at {self._path} is unreadable: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Client storage at {self._path} is not a JSON object.")
        return {str(key): str(value) for key, value in raw.items()}

    def _write_unlocked(self, entries: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2, ensure_ascii=False)
        tmp_path.replace(self._path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load_unlocked().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            entries = self._load_unlocked()
            entries[key] = value
            self._write_unlocked(entries)

    def delete(self, key: str) -> None:
        with self._lock:
            entries = self._load_unlocked()
            if entries.pop(key, None) is not None:
                self._write_unlocked(entries)


class DatabaseStorage:
    """Key/value storage backed by the ``client_storage`` table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with session_scope(self._session_factory, commit=False) as session:
            return session.execute(
                select(ClientStorageEntryModel.value).where(ClientStorageEntryModel.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with session_scope(self._session_factory) as session:
            entry = session.get(ClientStorageEntryModel, key)
            if entry is None:
                session.add(ClientStorageEntryModel(key=key, value=value))
            else:
                entry.value = value

    def delete(self, key: str) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(delete(ClientStorageEntryModel).where(ClientStorageEntryModel.key == key))


class ProfileStore:
    """Sole reader and writer of the cached profile, remember-me marker and language."""

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    def load_profile(self) -> Optional[UserProfile]:
        raw = self._backend.get(PROFILE_KEY)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict) or not all(payload.get(key) for key in _REQUIRED_PROFILE_FIELDS):
                raise ValueError("cached profile is missing id, name or role")
            return UserProfile.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            logger.warning("Discarding invalid cached profile: %s", exc)
            self._backend.delete(PROFILE_KEY)
            return None

    def save_profile(self, profile: UserProfile) -> None:
        self._backend.set(PROFILE_KEY, profile.model_dump_json())

    def clear_profile(self) -> None:
        self._backend.delete(PROFILE_KEY)

    def remember_me(self) -> bool:
        return self._backend.get(REMEMBER_ME_KEY) == "true"

    def set_remember_me(self, flag: bool) -> None:
        if flag:
            self._backend.set(REMEMBER_ME_KEY, "true")
        else:
            self._backend.delete(REMEMBER_ME_KEY)

    def load_language(self) -> Optional[Language]:
        return normalize_language(self._backend.get(LANGUAGE_KEY))

    def save_language(self, language: Language) -> None:
        if normalize_language(language) is None:
            raise ValueError(f"Unsupported language code: {language!r}")
        self._backend.set(LANGUAGE_KEY, language)


def create_profile_store(settings: Optional[Settings] = None) -> ProfileStore:
    settings = settings or get_settings()
    if settings.storage_mode == "database":
        backend: StorageBackend = DatabaseStorage(make_session_factory(get_engine(settings)))
    else:
        backend = JsonFileStorage(settings.data_dir / "client_storage.json")
    return ProfileStore(backend)


__all__ = [
    "DatabaseStorage",
    "JsonFileStorage",
    "LANGUAGE_KEY",
    "PROFILE_KEY",
    "ProfileStore",
    "REMEMBER_ME_KEY",
    "StorageBackend",
    "create_profile_store",
]
