from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from learnio.profiles import (
    DEFAULT_STUDENT_GRADE,
    RETURNING_STUDENT_AVATAR,
    TEACHER_AVATAR,
    Credentials,
    UserProfile,
    default_username,
    local_user_id,
)

MOMENT = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_badges_are_deduplicated_and_serialized_sorted() -> None:
    profile = UserProfile(
        id="u1", name="Zoya", username="zoya", role="student", grade=6, badges=["star", "ace", "star"]
    )
    assert profile.badges == {"star", "ace"}
    assert profile.model_dump(mode="json")["badges"] == ["ace", "star"]


@pytest.mark.parametrize("grade", [None, 5, 13])
def test_student_grade_must_be_in_range(grade: int | None) -> None:
    with pytest.raises(ValidationError):
        UserProfile(id="u1", name="Zoya", username="zoya", role="student", grade=grade)


def test_teacher_has_no_grade() -> None:
    with pytest.raises(ValidationError):
        UserProfile(id="t1", name="Mr Rao", username="rao", role="teacher", grade=8)


def test_id_and_role_are_immutable() -> None:
    profile = UserProfile(id="u1", name="Zoya", username="zoya", role="student", grade=6)
    with pytest.raises(ValidationError):
        profile.role = "teacher"  # type: ignore[misc]
    with pytest.raises(ValidationError):
        profile.id = "u2"  # type: ignore[misc]


def test_identifier_matching() -> None:
    profile = UserProfile(
        id="u1", name="Zoya", username="Zoya_K", email="Zoya@Example.org", role="student", grade=6
    )
    assert profile.matches_identifier("zoya_k")
    assert profile.matches_identifier("ZOYA@example.ORG")
    assert not profile.matches_identifier("zoya@example.com")
    assert not profile.matches_identifier("   ")


def test_from_remote_applies_fallbacks() -> None:
    profile = UserProfile.from_remote({"id": "t9", "user_type": "teacher"}, identifier="rao", moment=MOMENT)

    assert profile.name == "Unknown User"
    assert profile.school == "Unknown School"
    assert profile.username == "rao"
    assert profile.avatar == TEACHER_AVATAR
    assert (profile.xp, profile.level, profile.streak) == (0, 1, 0)
    assert profile.created_at == profile.last_login == MOMENT


def test_from_remote_accepts_camel_case_fields() -> None:
    profile = UserProfile.from_remote(
        {
            "id": "s1",
            "name": "Dev",
            "type": "student",
            "grade": "10",
            "profilePicture": "🦊",
            "createdAt": "2024-06-01T10:00:00+00:00",
        },
        identifier="dev@example.org",
        moment=MOMENT,
    )
    assert profile.grade == 10
    assert profile.avatar == "🦊"
    assert profile.created_at == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)


def test_from_remote_without_id_synthesizes_local_id() -> None:
    profile = UserProfile.from_remote({"type": "student", "grade": 7}, identifier="dev", moment=MOMENT)
    assert profile.id == local_user_id(MOMENT)
    assert profile.avatar == RETURNING_STUDENT_AVATAR


@pytest.mark.parametrize("grade", [None, 3, 13, "seven", "9"])
def test_from_remote_clamps_student_grade(grade: object) -> None:
    payload = {"id": "srv-9", "type": "student", "grade": grade}
    profile = UserProfile.from_remote(payload, identifier="asha", moment=MOMENT)
    assert profile.grade == (9 if grade == "9" else DEFAULT_STUDENT_GRADE)


def test_from_remote_drops_teacher_grade() -> None:
    profile = UserProfile.from_remote({"id": "t1", "type": "teacher", "grade": 8}, identifier="rao", moment=MOMENT)
    assert profile.grade is None


def test_touched_refreshes_last_login_only() -> None:
    profile = UserProfile(id="u1", name="Zoya", username="zoya", role="student", grade=6, created_at=MOMENT)
    later = datetime(2025, 5, 1, tzinfo=timezone.utc)
    touched = profile.touched(later)
    assert touched.last_login == later
    assert touched.created_at == MOMENT
    assert profile.last_login != later


def test_helpers() -> None:
    assert local_user_id(MOMENT) == f"user_{int(MOMENT.timestamp() * 1000)}"
    assert default_username("Anil  Kumar Iyer") == "anilkumariyer"


def test_credentials_hide_secret() -> None:
    credentials = Credentials(identifier="grade6", secret="demo123")
    assert "demo123" not in repr(credentials)
    assert credentials.as_payload() == {"usernameOrEmail": "grade6", "password": "demo123"}
