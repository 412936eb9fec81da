"""Client for the remote authentication service (login and registration)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Settings, get_settings
from .errors import NetworkUnreachable
from .profiles import Credentials

logger = logging.getLogger(__name__)


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    user: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    success: bool
    requires_verification: bool = Field(False, alias="requiresVerification")
    user: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class AuthService(Protocol):
    async def login(self, credentials: Credentials) -> LoginResponse:  # pragma: no cover - protocol definition
        ...

    async def register(self, fields: Dict[str, Any]) -> RegistrationResponse:  # pragma: no cover - protocol definition
        ...


class RemoteAuthService:
    """Talks to the hosted auth functions.

    Any transport failure, timeout, non-2xx status or unparseable body raises
    :class:`NetworkUnreachable`. A 2xx body with ``success: false`` is returned
    as-is so callers can treat it as an authoritative rejection.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RemoteAuthService":
        settings = settings or get_settings()
        return cls(
            settings.auth_base_url,
            api_key=settings.auth_api_key,
            timeout=settings.auth_timeout_seconds,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _post(self, path: str, body: Dict[str, Any]) -> Any:
        endpoint = f"{self._base_url}{path}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(endpoint, json=body, headers=self._headers())
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise NetworkUnreachable(
                    f"Auth service returned {exc.response.status_code} for {path}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise NetworkUnreachable(f"Auth service call to {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkUnreachable(f"Auth service returned a non-JSON body for {path}") from exc

    async def login(self, credentials: Credentials) -> LoginResponse:
        data = await self._post("/auth/login", credentials.as_payload())
        try:
            parsed = LoginResponse.model_validate(data)
        except ValidationError as exc:
            raise NetworkUnreachable(f"Auth service returned an invalid login payload: {exc}") from exc
        logger.debug("Remote login answered (success=%s)", parsed.success)
        return parsed

    async def register(self, fields: Dict[str, Any]) -> RegistrationResponse:
        data = await self._post("/auth/register", fields)
        try:
            parsed = RegistrationResponse.model_validate(data)
        except ValidationError as exc:
            raise NetworkUnreachable(f"Auth service returned an invalid registration payload: {exc}") from exc
        logger.debug(
            "Remote registration answered (success=%s, requires_verification=%s)",
            parsed.success,
            parsed.requires_verification,
        )
        return parsed


__all__ = [
    "AuthService",
    "LoginResponse",
    "RegistrationResponse",
    "RemoteAuthService",
]
