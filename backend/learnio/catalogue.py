"""Configuration data injected into the resolver and router: demo roster and activity vocabulary."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .profiles import RETURNING_STUDENT_AVATAR, TEACHER_AVATAR, Credentials, UserProfile

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_DEMO_ROSTER_PATH = DATA_DIR / "demo_roster.json"
DEFAULT_CATALOGUE_PATH = DATA_DIR / "activity_catalogue.json"


class DemoAccount(BaseModel):
    """A built-in sample account usable without backend connectivity."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    profile: Dict[str, Any]

    def matches(self, credentials: Credentials) -> bool:
        return credentials.identifier == self.username and credentials.secret == self.password

    def to_profile(self, moment: Optional[datetime] = None) -> UserProfile:
        moment = moment or datetime.now(timezone.utc)
        payload = dict(self.profile)
        payload.setdefault("username", self.username)
        payload.setdefault(
            "avatar",
            TEACHER_AVATAR if payload.get("role") == "teacher" else RETURNING_STUDENT_AVATAR,
        )
        payload["created_at"] = moment
        payload["last_login"] = moment
        return UserProfile.model_validate(payload)


class DemoRoster(BaseModel):
    accounts: List[DemoAccount] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_profiles(self) -> "DemoRoster":
        seen: set[str] = set()
        for account in self.accounts:
            if account.username in seen:
                raise ValueError(f"Duplicate demo account username: {account.username}")
            seen.add(account.username)
            account.to_profile()
        return self

    def find(self, credentials: Credentials) -> Optional[DemoAccount]:
        for account in self.accounts:
            if account.matches(credentials):
                return account
        return None


class ActivityEntry(BaseModel):
    view: str = Field(..., min_length=1)
    back: Optional[str] = None
    params: Dict[str, str] = Field(default_factory=dict)


class PrefixRule(BaseModel):
    """A structured prefix whose remainder is resolved against ``entries``."""

    prefix: str = Field(..., min_length=1)
    kind: Literal["unit", "subtopic"]
    entries: Dict[str, ActivityEntry] = Field(default_factory=dict)
    fallback: Optional[ActivityEntry] = None


class MembershipCatalogue(BaseModel):
    """A closed allow-list of references handled by one catalogue handler."""

    name: str = Field(..., min_length=1)
    view: str = Field(..., min_length=1)
    members: List[str] = Field(default_factory=list)


class MissionRules(BaseModel):
    separator: str = Field("-", min_length=1)
    allow_list: List[str] = Field(default_factory=list)
    placeholder: str = "coming-soon"
    # announced missions without a game yet: id -> display title
    upcoming: Dict[str, str] = Field(default_factory=dict)
    games: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _upcoming_have_no_game(self) -> "MissionRules":
        clash = sorted(set(self.upcoming) & set(self.games))
        if clash:
            raise ValueError(f"Missions listed as both upcoming and playable: {clash}")
        return self


class ActivityCatalogue(BaseModel):
    named: Dict[str, ActivityEntry] = Field(default_factory=dict)
    prefixes: List[PrefixRule] = Field(default_factory=list)
    catalogues: List[MembershipCatalogue] = Field(default_factory=list)
    missions: MissionRules = Field(default_factory=MissionRules)

    @model_validator(mode="after")
    def _unique_prefixes(self) -> "ActivityCatalogue":
        prefixes = [rule.prefix for rule in self.prefixes]
        if len(prefixes) != len(set(prefixes)):
            raise ValueError("Activity catalogue prefixes must be unique.")
        return self


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_demo_roster(path: Optional[Path] = None) -> DemoRoster:
    source = path or DEFAULT_DEMO_ROSTER_PATH
    roster = DemoRoster.model_validate(_read_json(source))
    logger.debug("Loaded %d demo accounts from %s", len(roster.accounts), source)
    return roster


def load_activity_catalogue(path: Optional[Path] = None) -> ActivityCatalogue:
    source = path or DEFAULT_CATALOGUE_PATH
    catalogue = ActivityCatalogue.model_validate(_read_json(source))
    logger.debug(
        "Loaded activity catalogue from %s (%d named, %d prefixes, %d catalogues)",
        source,
        len(catalogue.named),
        len(catalogue.prefixes),
        len(catalogue.catalogues),
    )
    return catalogue


@lru_cache
def default_demo_roster() -> DemoRoster:
    return load_demo_roster()


@lru_cache
def default_activity_catalogue() -> ActivityCatalogue:
    return load_activity_catalogue()


__all__ = [
    "ActivityCatalogue",
    "ActivityEntry",
    "DemoAccount",
    "DemoRoster",
    "MembershipCatalogue",
    "MissionRules",
    "PrefixRule",
    "default_activity_catalogue",
    "default_demo_roster",
    "load_activity_catalogue",
    "load_demo_roster",
]
