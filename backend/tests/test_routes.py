from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from learnio.catalogue import load_demo_roster
from learnio.config import get_settings
from learnio.main import app
from learnio.session import SessionController
from learnio.session_routes import get_session_controller, reset_session_controller
from learnio.storage import JsonFileStorage, ProfileStore

from conftest import FIXED_MOMENT, FakeAuthBackend


@pytest.fixture
def client(controller: SessionController) -> Iterator[TestClient]:
    app.dependency_overrides[get_session_controller] = lambda: controller
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _signup_body(**overrides: object) -> dict:
    body = {
        "name": "Tara",
        "username": "tara_b",
        "email": "tara@example.org",
        "password": "Harbor2024",
        "confirm_password": "Harbor2024",
        "grade": 8,
        "accept_terms": True,
    }
    body.update(overrides)
    return body


def test_health(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_signed_out_session_shows_onboarding(client: TestClient) -> None:
    payload = client.get("/api/session").json()
    assert payload["signed_in"] is False
    assert payload["view"]["view"] == "onboarding"
    assert payload["onboarding"]["step"] == "welcome"


def test_demo_login_then_navigate(client: TestClient, auth_backend: FakeAuthBackend) -> None:
    auth_backend.unreachable = True

    demo = client.post("/api/session/demo", json={"username": "grade11", "password": "demo123"})
    assert demo.json()["onboarding"]["step"] == "login"
    assert demo.json()["onboarding"]["demo_identifier"] == "grade11"

    login = client.post("/api/onboarding/login", json={"remember": True})
    assert login.status_code == 200
    assert login.json()["completed"] is True

    navigated = client.post("/api/session/navigate", json={"reference": "advanced-math-unit3"})
    body = navigated.json()
    assert body["accepted"] is True
    assert body["session"]["view"]["view"] == "unit-coordinate-geometry"
    assert body["session"]["profile"]["id"] == "demo_student_11"

    dashboard = client.post("/api/session/dashboard").json()
    assert dashboard["view"]["params"] == {"variant": "grade-11"}

    logged_out = client.post("/api/session/logout").json()
    assert logged_out["signed_in"] is False
    assert logged_out["activity"] is None


def test_rejected_login_maps_to_401_with_localized_message(client: TestClient) -> None:
    client.post("/api/onboarding/language", json={"language": "hi"})
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/login-step")

    response = client.post("/api/onboarding/login", json={"identifier": "grade6", "password": "nope"})

    assert response.status_code == 401
    detail = response.json()["detail"]
    assert detail["error"] == "invalidCredentials"
    assert detail["message"] == "गलत उपयोगकर्ता नाम या पासवर्ड।"


def test_unavailable_login_maps_to_503(client: TestClient, auth_backend: FakeAuthBackend) -> None:
    auth_backend.unreachable = True
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/login-step")

    response = client.post("/api/onboarding/login", json={"identifier": "stranger", "password": "x"})

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "authUnavailable"


def test_signup_validation_maps_to_422(client: TestClient) -> None:
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/user-type", json={"role": "student"})

    response = client.post("/api/onboarding/signup", json=_signup_body(email="not-an-email"))

    assert response.status_code == 422
    assert response.json()["detail"]["fields"] == {"email": "Please enter a valid email address"}


def test_signup_rejection_maps_to_400(client: TestClient, auth_backend: FakeAuthBackend) -> None:
    auth_backend.register_reply = (200, {"success": False, "error": "Username taken"})
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/user-type", json={"role": "student"})

    response = client.post("/api/onboarding/signup", json=_signup_body())

    assert response.status_code == 400
    assert client.get("/api/onboarding").json()["step"] == "signUp"


def test_signup_then_bonus_signs_in(client: TestClient) -> None:
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/user-type", json={"role": "student"})
    assert client.post("/api/onboarding/signup", json=_signup_body()).json()["step"] == "welcomeBonus"

    client.post("/api/onboarding/bonus-complete")

    session = client.get("/api/session").json()
    assert session["signed_in"] is True
    assert session["profile"]["xp"] == 100
    assert session["view"]["params"] == {"variant": "grade-8"}


def test_navigation_ignored_while_signed_out(client: TestClient) -> None:
    response = client.post("/api/session/navigate", json={"reference": "polynomials"})
    assert response.json()["accepted"] is False
    assert response.json()["session"]["activity"] is None


def test_dashboard_requires_profile(client: TestClient) -> None:
    response = client.post("/api/session/dashboard")
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "notSignedIn"


def test_illegal_onboarding_step_maps_to_409(client: TestClient) -> None:
    response = client.post("/api/onboarding/user-type", json={"role": "teacher"})
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "illegalTransition"


def test_language_change_persists(client: TestClient, controller: SessionController) -> None:
    assert client.post("/api/session/language", json={"language": "or"}).json()["language"] == "or"
    assert client.post("/api/session/language", json={"language": "xx"}).status_code == 422
    assert controller.language == "or"


def test_default_controller_restores_remembered_profile(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    remembered = load_demo_roster().accounts[0].to_profile(FIXED_MOMENT)
    seeded = ProfileStore(JsonFileStorage(tmp_path / "client_storage.json"))
    seeded.save_profile(remembered)
    seeded.set_remember_me(True)
    monkeypatch.setenv("LEARNIO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LEARNIO_STORAGE_MODE", "file")
    get_settings.cache_clear()
    reset_session_controller()
    try:
        payload = TestClient(app).get("/api/session").json()
    finally:
        reset_session_controller()
        get_settings.cache_clear()

    assert payload["signed_in"] is True
    assert payload["profile"]["id"] == remembered.id


def test_back_and_cancel_without_pending_login(client: TestClient) -> None:
    client.post("/api/onboarding/next")
    client.post("/api/onboarding/login-step")

    assert client.post("/api/onboarding/cancel-login").json() == {"cancelled": False}
    assert client.post("/api/onboarding/back").json()["step"] == "userType"


def test_restore_without_remember_me_stays_signed_out(client: TestClient) -> None:
    assert client.post("/api/session/restore").json()["signed_in"] is False


def test_onboarding_closed_once_signed_in(client: TestClient, auth_backend: FakeAuthBackend) -> None:
    auth_backend.unreachable = True
    client.post("/api/session/demo", json={"username": "teacher", "password": "demo123"})
    client.post("/api/onboarding/login", json={})

    assert client.get("/api/onboarding").status_code == 409
    assert client.post("/api/session/demo", json={"username": "grade6", "password": "demo123"}).status_code == 409
    assert client.get("/api/session").json()["view"]["params"] == {"variant": "admin"}
