from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from learnio.catalogue import ActivityCatalogue, DemoRoster, load_activity_catalogue, load_demo_roster
from learnio.profiles import Credentials, TEACHER_AVATAR

from conftest import FIXED_MOMENT


def test_default_roster_accounts(roster: DemoRoster) -> None:
    assert [account.username for account in roster.accounts] == ["grade6", "grade11", "teacher"]
    assert roster.find(Credentials("grade11", "demo123")) is not None
    assert roster.find(Credentials("grade11", "demo1234")) is None
    assert roster.find(Credentials("Grade11", "demo123")) is None


def test_demo_profile_is_synthesized_with_clock(roster: DemoRoster) -> None:
    account = roster.find(Credentials("teacher", "demo123"))
    assert account is not None

    profile = account.to_profile(FIXED_MOMENT)

    assert profile.role == "teacher"
    assert profile.avatar == TEACHER_AVATAR
    assert profile.created_at == profile.last_login == FIXED_MOMENT
    assert profile.badges == {"educator", "mentor"}


def test_roster_rejects_duplicates_and_invalid_profiles() -> None:
    entry = {"username": "a", "password": "p", "profile": {"id": "a", "name": "A", "role": "student", "grade": 7}}
    with pytest.raises(ValidationError):
        DemoRoster.model_validate({"accounts": [entry, entry]})
    broken = {**entry, "profile": {"id": "a", "name": "A", "role": "student", "grade": 2}}
    with pytest.raises(ValidationError):
        DemoRoster.model_validate({"accounts": [broken]})


def test_catalogue_rejects_duplicate_prefixes() -> None:
    rule = {"prefix": "unit-", "kind": "unit"}
    with pytest.raises(ValidationError):
        ActivityCatalogue.model_validate({"prefixes": [rule, rule]})


def test_default_catalogue_shape(catalogue: ActivityCatalogue) -> None:
    assert {rule.prefix for rule in catalogue.prefixes} == {"subtopic-", "advanced-math-"}
    assert len(catalogue.catalogues[0].members) == 27
    assert catalogue.missions.allow_list == ["natural-numbers", "food-components"]
    assert len(catalogue.missions.upcoming) == 60


def test_loaders_accept_override_paths(tmp_path: Path) -> None:
    roster_path = tmp_path / "roster.json"
    roster_path.write_text(
        json.dumps(
            {
                "accounts": [
                    {
                        "username": "pilot",
                        "password": "pilot-pass",
                        "profile": {"id": "pilot", "name": "Pilot", "role": "student", "grade": 12},
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    catalogue_path = tmp_path / "catalogue.json"
    catalogue_path.write_text(json.dumps({"named": {"home": {"view": "home"}}}), encoding="utf-8")

    roster = load_demo_roster(roster_path)
    assert roster.accounts[0].to_profile(FIXED_MOMENT).username == "pilot"
    assert list(load_activity_catalogue(catalogue_path).named) == ["home"]
