from __future__ import annotations

import asyncio

import httpx
import pytest

from learnio.auth_client import RemoteAuthService
from learnio.errors import NetworkUnreachable
from learnio.profiles import Credentials

from conftest import FakeAuthBackend


def test_login_parses_success_payload(auth_backend: FakeAuthBackend) -> None:
    auth_backend.login_reply = (200, {"success": True, "user": {"id": "u1"}, "session": {"token": "t"}})

    response = asyncio.run(auth_backend.service().login(Credentials("grade6", "pw")))

    assert response.success is True
    assert response.user == {"id": "u1"}


def test_rejection_is_returned_not_raised(auth_backend: FakeAuthBackend) -> None:
    response = asyncio.run(auth_backend.service().login(Credentials("grade6", "pw")))
    assert response.success is False
    assert response.error == "Invalid credentials"


def test_non_2xx_raises_network_unreachable(auth_backend: FakeAuthBackend) -> None:
    auth_backend.login_reply = (500, {"error": "boom"})

    with pytest.raises(NetworkUnreachable) as excinfo:
        asyncio.run(auth_backend.service().login(Credentials("grade6", "pw")))

    assert excinfo.value.status_code == 500


def test_transport_failure_raises_network_unreachable(auth_backend: FakeAuthBackend) -> None:
    auth_backend.unreachable = True
    with pytest.raises(NetworkUnreachable):
        asyncio.run(auth_backend.service().register({"email": "a@b.c"}))


def test_non_json_body_raises_network_unreachable() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    service = RemoteAuthService("http://auth.test", transport=transport)

    with pytest.raises(NetworkUnreachable):
        asyncio.run(service.login(Credentials("grade6", "pw")))


def test_unexpected_shape_raises_network_unreachable() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": 1}))
    service = RemoteAuthService("http://auth.test", transport=transport)

    with pytest.raises(NetworkUnreachable):
        asyncio.run(service.login(Credentials("grade6", "pw")))


def test_register_reads_verification_flag(auth_backend: FakeAuthBackend) -> None:
    auth_backend.register_reply = (200, {"success": True, "requiresVerification": True, "email": "a@b.co"})

    response = asyncio.run(auth_backend.service().register({"email": "a@b.co"}))

    assert response.requires_verification is True
    assert response.email == "a@b.co"
    assert auth_backend.endpoints() == ["register"]


def test_bearer_header_sent_when_configured(auth_backend: FakeAuthBackend) -> None:
    asyncio.run(auth_backend.service(api_key="anon-key").login(Credentials("grade6", "pw")))
    asyncio.run(auth_backend.service().login(Credentials("grade6", "pw")))

    assert auth_backend.headers[0]["authorization"] == "Bearer anon-key"
    assert "authorization" not in auth_backend.headers[1]
