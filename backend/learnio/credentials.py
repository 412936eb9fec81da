"""Tiered credential resolution: remote service, then demo roster, then cached profile.

Tiers run strictly in order and are never retried within one call. Only an
unreachable remote service lets the demo roster and the cache be consulted;
a reachable service that says "no" is final.

The cached-profile tier accepts a matching identifier without checking the
secret, since nothing can verify it offline. That relaxed mode keeps a
returning learner working without connectivity and is kept as-is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from .auth_client import AuthService
from .catalogue import DemoRoster
from .errors import AuthUnavailableError, InvalidCredentialsError, NetworkUnreachable
from .profiles import Credentials, UserProfile
from .storage import ProfileStore
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class ResolutionTier(str, Enum):
    REMOTE = "remote"
    DEMO = "demo"
    CACHE = "cache"


@dataclass(frozen=True)
class ResolvedLogin:
    profile: UserProfile
    tier: ResolutionTier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialResolver:
    def __init__(
        self,
        remote: AuthService,
        roster: DemoRoster,
        store: ProfileStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._remote = remote
        self._roster = roster
        self._store = store
        self._clock = clock

    async def resolve(self, identifier: str, secret: str, remember: bool) -> ResolvedLogin:
        """Authenticate one login attempt and persist the outcome.

        Raises :class:`InvalidCredentialsError` when a reachable service
        rejects the pair and :class:`AuthUnavailableError` when no tier can
        authenticate it.
        """
        credentials = Credentials(identifier=identifier.strip(), secret=secret)
        moment = self._clock()

        resolved = await self._remote_tier(credentials, moment)
        if resolved is None:
            resolved = self._demo_tier(credentials, moment)
        if resolved is None:
            resolved = self._cache_tier(credentials)
        if resolved is None:
            emit_event("login_failed", kind="unavailable", identifier=credentials.identifier)
            raise AuthUnavailableError("no tier could authenticate the identifier")

        profile = resolved.profile.touched(moment)
        self._store.save_profile(profile)
        self._store.set_remember_me(remember)
        emit_event(
            "login_resolved",
            tier=resolved.tier,
            user_id=profile.id,
            role=profile.role,
            remember=remember,
        )
        return ResolvedLogin(profile=profile, tier=resolved.tier)

    async def _remote_tier(self, credentials: Credentials, moment: datetime) -> Optional[ResolvedLogin]:
        try:
            response = await self._remote.login(credentials)
        except NetworkUnreachable as exc:
            logger.warning("Remote sign-in unreachable, trying offline tiers: %s", exc)
            return None

        if not response.success:
            emit_event("login_failed", kind="invalid_credentials", identifier=credentials.identifier)
            raise InvalidCredentialsError(response.error or "rejected by auth service")

        # an accepted login never falls through to the offline tiers
        if not response.user:
            logger.warning("Remote sign-in succeeded without a user record")
            emit_event("login_failed", kind="unusable_user", identifier=credentials.identifier)
            raise AuthUnavailableError("auth service accepted the login but sent no user record")
        try:
            profile = UserProfile.from_remote(response.user, identifier=credentials.identifier, moment=moment)
        except ValueError as exc:
            logger.warning("Remote user record is malformed: %s", exc)
            emit_event("login_failed", kind="unusable_user", identifier=credentials.identifier)
            raise AuthUnavailableError("auth service sent an unusable user record") from exc
        return ResolvedLogin(profile=profile, tier=ResolutionTier.REMOTE)

    def _demo_tier(self, credentials: Credentials, moment: datetime) -> Optional[ResolvedLogin]:
        account = self._roster.find(credentials)
        if account is None:
            return None
        logger.info("Signed in with demo account %s", account.username)
        return ResolvedLogin(profile=account.to_profile(moment), tier=ResolutionTier.DEMO)

    def _cache_tier(self, credentials: Credentials) -> Optional[ResolvedLogin]:
        cached = self._store.load_profile()
        if cached is None or not cached.matches_identifier(credentials.identifier):
            return None
        logger.info("Signed in offline from the cached profile of %s", cached.id)
        return ResolvedLogin(profile=cached, tier=ResolutionTier.CACHE)


__all__ = ["CredentialResolver", "ResolutionTier", "ResolvedLogin"]
