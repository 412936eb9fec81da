"""Session record, its reducer and the Session Controller that owns both."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple, Type, Union

from pydantic import BaseModel

from .activity_router import ONBOARDING_VIEW, ActivityRouter, ViewSelector
from .auth_client import AuthService, RemoteAuthService
from .catalogue import default_activity_catalogue, default_demo_roster, load_activity_catalogue, load_demo_roster
from .config import Settings, get_settings
from .credentials import CredentialResolver
from .i18n import FALLBACK_LANGUAGE, Language, normalize_language
from .inflight import ResolutionSlot
from .onboarding import OnboardingMachine, OnboardingSnapshot
from .profiles import Credentials, UserProfile
from .storage import ProfileStore, create_profile_store
from .telemetry import emit_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    language: Language
    profile: Optional[UserProfile] = None
    activity: Optional[str] = None
    pending_demo: Optional[Credentials] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.activity is not None and self.profile is None:
            raise ValueError("An activity reference requires a signed-in profile.")

    @property
    def signed_in(self) -> bool:
        return self.profile is not None


@dataclass(frozen=True)
class ProfileAdopted:
    profile: UserProfile


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class LanguageChanged:
    language: Language


@dataclass(frozen=True)
class Navigated:
    reference: str


@dataclass(frozen=True)
class DashboardRequested:
    pass


@dataclass(frozen=True)
class LearningStarted:
    demo: Optional[Credentials] = field(default=None, repr=False)


SessionEvent = Union[ProfileAdopted, LoggedOut, LanguageChanged, Navigated, DashboardRequested, LearningStarted]
EVENT_TYPES: Tuple[Type, ...] = (
    ProfileAdopted,
    LoggedOut,
    LanguageChanged,
    Navigated,
    DashboardRequested,
    LearningStarted,
)


Transition = Callable[[SessionState, SessionEvent], SessionState]


def _ignore(state: SessionState, event: SessionEvent) -> SessionState:
    return state


def _adopt(state: SessionState, event: SessionEvent) -> SessionState:
    assert isinstance(event, ProfileAdopted)
    return SessionState(language=state.language, profile=event.profile)


def _reset(state: SessionState, event: SessionEvent) -> SessionState:
    return SessionState(language=state.language)


def _change_language(state: SessionState, event: SessionEvent) -> SessionState:
    assert isinstance(event, LanguageChanged)
    return replace(state, language=event.language)


def _navigate(state: SessionState, event: SessionEvent) -> SessionState:
    assert isinstance(event, Navigated)
    return replace(state, activity=event.reference)


def _clear_activity(state: SessionState, event: SessionEvent) -> SessionState:
    return replace(state, activity=None)


def _start_learning(state: SessionState, event: SessionEvent) -> SessionState:
    assert isinstance(event, LearningStarted)
    return replace(state, pending_demo=event.demo)


TRANSITIONS: Dict[Tuple[bool, Type], Transition] = {
    (False, ProfileAdopted): _adopt,
    (False, LoggedOut): _reset,
    (False, LanguageChanged): _change_language,
    (False, Navigated): _ignore,
    (False, DashboardRequested): _ignore,
    (False, LearningStarted): _start_learning,
    (True, ProfileAdopted): _adopt,
    (True, LoggedOut): _reset,
    (True, LanguageChanged): _change_language,
    (True, Navigated): _navigate,
    (True, DashboardRequested): _clear_activity,
    (True, LearningStarted): _ignore,
}


_missing = {(signed_in, kind) for signed_in in (False, True) for kind in EVENT_TYPES} - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Session transition table is incomplete: {_missing}")


def reduce(state: SessionState, event: SessionEvent) -> SessionState:
    """Apply ``event`` to ``state``. Returns ``state`` itself when the event is ignored."""
    return TRANSITIONS[(state.signed_in, type(event))](state, event)


class SessionSnapshot(BaseModel):
    language: Language
    signed_in: bool
    profile: Optional[UserProfile] = None
    activity: Optional[str] = None
    demo_pending: bool = False
    view: ViewSelector
    onboarding: Optional[OnboardingSnapshot] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """Owns the single session record and composes the other components."""

    def __init__(
        self,
        store: ProfileStore,
        router: ActivityRouter,
        resolver: CredentialResolver,
        auth_service: AuthService,
        *,
        default_language: str = FALLBACK_LANGUAGE,
        slot: Optional[ResolutionSlot] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._router = router
        self._resolver = resolver
        self._auth = auth_service
        self._slot = slot or ResolutionSlot()
        self._clock = clock
        language = store.load_language() or normalize_language(default_language) or FALLBACK_LANGUAGE
        self._state = SessionState(language=language)
        self._onboarding: Optional[OnboardingMachine] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._state.profile

    @property
    def language(self) -> Language:
        return self._state.language

    @property
    def router(self) -> ActivityRouter:
        return self._router

    def _dispatch(self, event: SessionEvent) -> bool:
        previous = self._state
        self._state = reduce(previous, event)
        return self._state is not previous

    # -- onboarding ------------------------------------------------------

    @property
    def onboarding(self) -> Optional[OnboardingMachine]:
        """The live onboarding run, created on demand while nobody is signed in."""
        if self._state.signed_in:
            return None
        if self._onboarding is None or self._onboarding.completed:
            self._onboarding = self._new_onboarding(self._state.pending_demo)
        return self._onboarding

    def _new_onboarding(self, demo: Optional[Credentials]) -> OnboardingMachine:
        return OnboardingMachine(
            self._resolver,
            self._auth,
            on_complete=self.complete_onboarding,
            on_language=self.change_language,
            language=self._state.language,
            slot=self._slot,
            demo_credentials=demo,
            clock=self._clock,
        )

    def start_learning(self, demo: Optional[Credentials] = None) -> Optional[OnboardingMachine]:
        if not self._dispatch(LearningStarted(demo=demo)):
            logger.debug("start_learning ignored while signed in")
            return None
        self._onboarding = self._new_onboarding(demo)
        return self._onboarding

    def complete_onboarding(self, profile: UserProfile) -> None:
        self._dispatch(ProfileAdopted(profile=profile))
        self._store.save_profile(profile)
        self._onboarding = None
        logger.info("Session adopted profile %s (%s)", profile.id, profile.role)

    def restore(self) -> Optional[UserProfile]:
        """Adopt the cached profile when the remember-me marker is set."""
        if self._state.signed_in:
            return self._state.profile
        if not self._store.remember_me():
            return None
        cached = self._store.load_profile()
        if cached is None:
            return None
        self._dispatch(ProfileAdopted(profile=cached))
        self._onboarding = None
        emit_event("session_restored", user_id=cached.id)
        return cached

    # -- session operations ----------------------------------------------

    def logout(self) -> None:
        user_id = self._state.profile.id if self._state.profile else None
        self._slot.cancel()
        self._dispatch(LoggedOut())
        self._store.set_remember_me(False)
        self._onboarding = None
        emit_event("session_logout", user_id=user_id)

    def change_language(self, language: str) -> Language:
        lang = normalize_language(language)
        if lang is None:
            raise ValueError(f"Unsupported language code: {language!r}")
        self._store.save_language(lang)
        self._dispatch(LanguageChanged(language=lang))
        if self._onboarding is not None:
            self._onboarding.set_language(lang)
        emit_event("language_changed", language=lang)
        return lang

    def navigate(self, reference: str) -> bool:
        """Record the activity to show. Ignored (returns False) while nobody is signed in."""
        if self._dispatch(Navigated(reference=reference)):
            emit_event("navigation_requested", reference=reference)
            return True
        emit_event("navigation_ignored", reference=reference)
        return False

    def go_to_dashboard(self) -> None:
        self._dispatch(DashboardRequested())

    def current_view(self, router: Optional[ActivityRouter] = None) -> ViewSelector:
        router = router or self._router
        if not self._state.signed_in:
            onboarding = self.onboarding
            step = onboarding.step.value if onboarding is not None else "welcome"
            return ViewSelector(view=ONBOARDING_VIEW, language=self._state.language, params={"step": step})
        return router.route(self._state.activity, self._state.language, self._state.profile)

    def snapshot(self) -> SessionSnapshot:
        onboarding = self.onboarding
        return SessionSnapshot(
            language=self._state.language,
            signed_in=self._state.signed_in,
            profile=self._state.profile,
            activity=self._state.activity,
            demo_pending=self._state.pending_demo is not None,
            view=self.current_view(),
            onboarding=onboarding.snapshot() if onboarding is not None else None,
        )


def create_session_controller(settings: Optional[Settings] = None) -> SessionController:
    """Wire a controller from settings: storage backend, packaged data and the remote client."""
    settings = settings or get_settings()
    store = create_profile_store(settings)
    roster = load_demo_roster(settings.demo_roster_path) if settings.demo_roster_path else default_demo_roster()
    catalogue = (
        load_activity_catalogue(settings.catalogue_path) if settings.catalogue_path else default_activity_catalogue()
    )
    remote = RemoteAuthService.from_settings(settings)
    resolver = CredentialResolver(remote, roster, store)
    return SessionController(
        store,
        ActivityRouter(catalogue),
        resolver,
        remote,
        default_language=settings.default_language,
        slot=ResolutionSlot(timeout=settings.auth_timeout_seconds),
    )


__all__ = [
    "DashboardRequested",
    "LanguageChanged",
    "LearningStarted",
    "LoggedOut",
    "Navigated",
    "ProfileAdopted",
    "SessionController",
    "SessionEvent",
    "SessionSnapshot",
    "SessionState",
    "TRANSITIONS",
    "create_session_controller",
    "reduce",
]
