from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Tuple

import httpx
import pytest

from learnio.activity_router import ActivityRouter
from learnio.auth_client import RemoteAuthService
from learnio.catalogue import ActivityCatalogue, DemoRoster, load_activity_catalogue, load_demo_roster
from learnio.credentials import CredentialResolver
from learnio.session import SessionController
from learnio.storage import JsonFileStorage, ProfileStore
from learnio.telemetry import TelemetryEvent, clear_listeners, register_listener

FIXED_MOMENT = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
AUTH_URL = "http://auth.test/functions/v1/make-server"


class FakeAuthBackend:
    """Scriptable stand-in for the hosted auth functions, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.unreachable = False
        self.login_reply: Tuple[int, Any] = (200, {"success": False, "error": "Invalid credentials"})
        self.register_reply: Tuple[int, Any] = (200, {"success": True, "user": {"id": "srv-user-1"}})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.headers: List[httpx.Headers] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.calls.append((request.url.path, body))
        self.headers.append(request.headers)
        if self.unreachable:
            raise httpx.ConnectError("auth service offline", request=request)
        status_code, payload = self.login_reply if request.url.path.endswith("/auth/login") else self.register_reply
        return httpx.Response(status_code, json=payload)

    def endpoints(self) -> List[str]:
        return [path.split("/auth/", 1)[-1] for path, _ in self.calls]

    def service(self, api_key: str | None = None) -> RemoteAuthService:
        return RemoteAuthService(
            AUTH_URL,
            api_key=api_key,
            timeout=2.0,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_MOMENT


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "client_storage.json"


@pytest.fixture
def store(storage_path: Path) -> ProfileStore:
    return ProfileStore(JsonFileStorage(storage_path))


@pytest.fixture
def roster() -> DemoRoster:
    return load_demo_roster()


@pytest.fixture
def catalogue() -> ActivityCatalogue:
    return load_activity_catalogue()


@pytest.fixture
def auth_backend() -> FakeAuthBackend:
    return FakeAuthBackend()


@pytest.fixture
def resolver(
    auth_backend: FakeAuthBackend,
    roster: DemoRoster,
    store: ProfileStore,
    clock: Callable[[], datetime],
) -> CredentialResolver:
    return CredentialResolver(auth_backend.service(), roster, store, clock=clock)


@pytest.fixture
def controller(
    auth_backend: FakeAuthBackend,
    resolver: CredentialResolver,
    catalogue: ActivityCatalogue,
    store: ProfileStore,
    clock: Callable[[], datetime],
) -> SessionController:
    return SessionController(
        store,
        ActivityRouter(catalogue),
        resolver,
        auth_backend.service(),
        clock=clock,
    )


@pytest.fixture
def events() -> Iterator[List[TelemetryEvent]]:
    captured: List[TelemetryEvent] = []
    register_listener(captured.append)
    yield captured
    clear_listeners()
