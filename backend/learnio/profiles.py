"""User profile and credential models."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Mapping, Optional, Set

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

Role = Literal["student", "teacher"]

VALID_GRADES = frozenset(range(6, 13))
DEFAULT_STUDENT_GRADE = 6
STUDENT_AVATAR = "🧑‍🎓"
RETURNING_STUDENT_AVATAR = "👨‍🎓"
TEACHER_AVATAR = "👩‍🏫"
WELCOME_BONUS_XP = 100
WELCOME_BADGE = "new_learner"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def local_user_id(moment: Optional[datetime] = None) -> str:
    moment = moment or _now()
    return f"user_{int(moment.timestamp() * 1000)}"


def default_username(name: str) -> str:
    return re.sub(r"\s+", "", name).lower()


class UserProfile(BaseModel):
    id: str = Field(..., min_length=1, frozen=True)
    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    email: str = ""
    role: Role = Field(..., frozen=True)
    grade: Optional[int] = None
    school: str = ""
    avatar: str = STUDENT_AVATAR
    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    badges: Set[str] = Field(default_factory=set)
    streak: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_now)
    last_login: datetime = Field(default_factory=_now)

    @field_validator("badges", mode="before")
    @classmethod
    def _dedupe_badges(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {str(item) for item in value if str(item).strip()}
        return value

    @model_validator(mode="after")
    def _check_role_fields(self) -> "UserProfile":
        if self.role == "student":
            if self.grade not in VALID_GRADES:
                raise ValueError(f"Student grade must be between 6 and 12, got {self.grade!r}.")
        elif self.grade is not None:
            raise ValueError("Teacher profiles do not carry a grade.")
        return self

    @field_serializer("badges")
    def _serialize_badges(self, badges: Set[str]) -> list[str]:
        return sorted(badges)

    def touched(self, moment: Optional[datetime] = None) -> "UserProfile":
        """Return a copy with ``last_login`` refreshed."""
        return self.model_copy(update={"last_login": moment or _now()})

    def matches_identifier(self, identifier: str) -> bool:
        candidate = identifier.strip().lower()
        if not candidate:
            return False
        if "@" in candidate:
            return bool(self.email) and self.email.strip().lower() == candidate
        return self.username.strip().lower() == candidate

    @classmethod
    def from_remote(
        cls,
        payload: Mapping[str, Any],
        *,
        identifier: str,
        moment: Optional[datetime] = None,
    ) -> "UserProfile":
        """Build a profile from a service ``user`` object, applying the client-side fallbacks."""
        moment = moment or _now()
        role = _first(payload, "type", "user_type", "role") or "student"
        avatar = _first(payload, "profilePicture", "profile_picture", "avatar")
        if not avatar:
            avatar = TEACHER_AVATAR if role == "teacher" else RETURNING_STUDENT_AVATAR
        grade = _student_grade(payload.get("grade")) if role == "student" else None
        return cls(
            id=str(payload.get("id") or local_user_id(moment)),
            name=payload.get("name") or "Unknown User",
            username=payload.get("username") or identifier.strip(),
            email=payload.get("email") or "",
            role=role,
            grade=grade,
            school=payload.get("school") or "Unknown School",
            avatar=avatar,
            xp=int(payload.get("xp") or 0),
            level=int(payload.get("level") or 1),
            badges=payload.get("badges") or [],
            streak=int(payload.get("streak") or 0),
            created_at=_first(payload, "createdAt", "created_at") or moment,
            last_login=moment,
        )


def _student_grade(value: Any) -> int:
    # the service may omit the grade or send one outside the curriculum range
    try:
        grade = int(value)
    except (TypeError, ValueError):
        return DEFAULT_STUDENT_GRADE
    return grade if grade in VALID_GRADES else DEFAULT_STUDENT_GRADE


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass(frozen=True)
class Credentials:
    """An identifier/secret pair that lives only for one resolution attempt."""

    identifier: str
    secret: str = field(repr=False)

    def as_payload(self) -> Dict[str, str]:
        return {"usernameOrEmail": self.identifier, "password": self.secret}


__all__ = [
    "Credentials",
    "DEFAULT_STUDENT_GRADE",
    "Role",
    "STUDENT_AVATAR",
    "TEACHER_AVATAR",
    "UserProfile",
    "VALID_GRADES",
    "WELCOME_BADGE",
    "WELCOME_BONUS_XP",
    "default_username",
    "local_user_id",
]
