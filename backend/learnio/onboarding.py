"""Onboarding state machine: welcome, language, user type, sign-up or login, welcome bonus.

The machine never writes durable storage. It hands the finished profile to
its completion callback, which is the only way control returns to the
session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, Field

from .auth_client import AuthService
from .credentials import CredentialResolver
from .errors import (
    AuthError,
    FormValidationError,
    IllegalTransition,
    LearnioError,
    NetworkUnreachable,
    RegistrationRejected,
    ResolutionCancelled,
)
from .i18n import FALLBACK_LANGUAGE, Language, normalize_language, translate
from .inflight import ResolutionSlot
from .profiles import (
    STUDENT_AVATAR,
    TEACHER_AVATAR,
    WELCOME_BADGE,
    WELCOME_BONUS_XP,
    Credentials,
    Role,
    UserProfile,
    default_username,
    local_user_id,
)
from .telemetry import emit_event
from .validation import LoginForm, SignUpForm, localize_errors, validate_login, validate_signup

logger = logging.getLogger(__name__)


class OnboardingStep(str, Enum):
    WELCOME = "welcome"
    LANGUAGE = "language"
    USER_TYPE = "userType"
    SIGN_UP = "signUp"
    TEACHER_SIGN_UP = "teacherSignUp"
    LOGIN = "login"
    WELCOME_BONUS = "welcomeBonus"


FORWARD_TRANSITIONS: Dict[OnboardingStep, FrozenSet[OnboardingStep]] = {
    OnboardingStep.WELCOME: frozenset({OnboardingStep.LANGUAGE, OnboardingStep.USER_TYPE}),
    OnboardingStep.LANGUAGE: frozenset({OnboardingStep.USER_TYPE}),
    OnboardingStep.USER_TYPE: frozenset(
        {OnboardingStep.SIGN_UP, OnboardingStep.TEACHER_SIGN_UP, OnboardingStep.LOGIN}
    ),
    OnboardingStep.SIGN_UP: frozenset({OnboardingStep.WELCOME_BONUS}),
    OnboardingStep.TEACHER_SIGN_UP: frozenset({OnboardingStep.WELCOME_BONUS}),
    OnboardingStep.LOGIN: frozenset(),
    OnboardingStep.WELCOME_BONUS: frozenset(),
}

# back always returns to the step actually visited before, which must be listed here
BACK_TRANSITIONS: Dict[OnboardingStep, FrozenSet[OnboardingStep]] = {
    OnboardingStep.WELCOME: frozenset(),
    OnboardingStep.LANGUAGE: frozenset({OnboardingStep.WELCOME}),
    OnboardingStep.USER_TYPE: frozenset({OnboardingStep.WELCOME, OnboardingStep.LANGUAGE}),
    OnboardingStep.SIGN_UP: frozenset({OnboardingStep.USER_TYPE}),
    OnboardingStep.TEACHER_SIGN_UP: frozenset({OnboardingStep.USER_TYPE}),
    OnboardingStep.LOGIN: frozenset({OnboardingStep.USER_TYPE}),
    OnboardingStep.WELCOME_BONUS: frozenset(),
}

SIGN_UP_STEPS = frozenset({OnboardingStep.SIGN_UP, OnboardingStep.TEACHER_SIGN_UP})


class OnboardingSnapshot(BaseModel):
    step: OnboardingStep
    language: Language
    role: Optional[Role] = None
    completed: bool = False
    error: Optional[str] = None
    message: Optional[str] = None
    detail: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    notice: Optional[str] = None
    demo_identifier: Optional[str] = None
    login_in_flight: bool = False
    can_go_back: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def registration_payload(form: SignUpForm) -> Dict[str, Any]:
    """Body sent to the registration endpoint. The teacher code travels here and nowhere else."""
    return {
        "email": form.email.strip(),
        "password": form.password,
        "name": form.name.strip(),
        "username": form.username.strip(),
        "type": form.role,
        "grade": form.grade if form.role == "student" else None,
        "school": form.school.strip(),
        "profilePicture": form.avatar or (TEACHER_AVATAR if form.role == "teacher" else STUDENT_AVATAR),
        "teacherCode": form.teacher_code.strip() if form.role == "teacher" else "",
    }


def profile_from_registration(
    form: SignUpForm,
    user: Mapping[str, Any],
    moment: datetime,
) -> UserProfile:
    name = form.name.strip()
    return UserProfile(
        id=str(user.get("id") or local_user_id(moment)),
        name=name,
        username=form.username.strip() or default_username(name),
        email=form.email.strip(),
        role=form.role,
        grade=form.grade if form.role == "student" else None,
        school=form.school.strip(),
        avatar=form.avatar or (TEACHER_AVATAR if form.role == "teacher" else STUDENT_AVATAR),
        xp=int(user.get("xp") or WELCOME_BONUS_XP),
        level=int(user.get("level") or 1),
        badges={WELCOME_BADGE},
        streak=int(user.get("streak") or 1),
        created_at=user.get("created_at") or user.get("createdAt") or moment,
        last_login=moment,
    )


class OnboardingMachine:
    """Drives one onboarding run from the welcome screen to a finished profile."""

    def __init__(
        self,
        resolver: CredentialResolver,
        auth_service: AuthService,
        *,
        on_complete: Callable[[UserProfile], None],
        on_language: Optional[Callable[[Language], None]] = None,
        language: str = FALLBACK_LANGUAGE,
        slot: Optional[ResolutionSlot] = None,
        demo_credentials: Optional[Credentials] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._resolver = resolver
        self._auth = auth_service
        self._on_complete = on_complete
        self._on_language = on_language
        self._language: Language = normalize_language(language) or FALLBACK_LANGUAGE
        self._slot = slot or ResolutionSlot()
        self._demo = demo_credentials
        self._clock = clock

        self._step = OnboardingStep.WELCOME
        self._history: List[OnboardingStep] = []
        self._role: Optional[Role] = None
        self._completed = False
        self._pending_profile: Optional[UserProfile] = None
        self._clear_feedback()

        if demo_credentials is not None:
            # demo entry lands straight on a pre-filled login form
            self._history = [OnboardingStep.WELCOME, OnboardingStep.USER_TYPE]
            self._step = OnboardingStep.LOGIN
            self._role = None

    @property
    def step(self) -> OnboardingStep:
        return self._step

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def language(self) -> Language:
        return self._language

    def set_language(self, language: Language) -> None:
        self._language = language

    def snapshot(self) -> OnboardingSnapshot:
        return OnboardingSnapshot(
            step=self._step,
            language=self._language,
            role=self._role,
            completed=self._completed,
            error=self._error_key,
            message=translate(self._error_key, self._language) if self._error_key else None,
            detail=self._error_detail,
            field_errors=dict(self._field_errors),
            notice=self._notice,
            demo_identifier=self._demo.identifier if self._demo else None,
            login_in_flight=self._slot.busy,
            can_go_back=bool(self._history) and self._history[-1] in BACK_TRANSITIONS[self._step],
        )

    # -- step navigation -------------------------------------------------

    def next(self) -> OnboardingSnapshot:
        if self._step not in (OnboardingStep.WELCOME, OnboardingStep.LANGUAGE):
            raise IllegalTransition(f"next is not available from {self._step.value}")
        self._advance(OnboardingStep.USER_TYPE)
        return self.snapshot()

    def open_language(self) -> OnboardingSnapshot:
        self._advance(OnboardingStep.LANGUAGE)
        return self.snapshot()

    def select_language(self, language: str) -> OnboardingSnapshot:
        self._require(OnboardingStep.WELCOME, OnboardingStep.LANGUAGE)
        lang = normalize_language(language)
        if lang is None:
            raise ValueError(f"Unsupported language code: {language!r}")
        if self._on_language is not None:
            self._on_language(lang)
        self._language = lang
        return self.snapshot()

    def select_user_type(self, role: Role) -> OnboardingSnapshot:
        target = OnboardingStep.TEACHER_SIGN_UP if role == "teacher" else OnboardingStep.SIGN_UP
        self._advance(target)
        self._role = role
        return self.snapshot()

    def open_login(self) -> OnboardingSnapshot:
        self._advance(OnboardingStep.LOGIN)
        return self.snapshot()

    def back(self) -> OnboardingSnapshot:
        self._ensure_active()
        if not self._history or self._history[-1] not in BACK_TRANSITIONS[self._step]:
            raise IllegalTransition(f"back is not available from {self._step.value}")
        if self._slot.busy:
            self._slot.cancel()
        previous = self._step
        self._step = self._history.pop()
        if self._step not in SIGN_UP_STEPS and previous in SIGN_UP_STEPS:
            self._role = None
        self._clear_feedback()
        emit_event("onboarding_transition", source=previous, target=self._step, direction="back")
        return self.snapshot()

    # -- remote round-trips ----------------------------------------------

    async def submit_signup(self, form: SignUpForm) -> OnboardingSnapshot:
        """Validate and register; only a created account reaches the welcome bonus.

        Rejections and transport failures stay on the sign-up step with the
        error attached, and are re-raised for the caller.
        """
        self._require(*SIGN_UP_STEPS)
        form = form.model_copy(update={"role": self._role or "student"})
        self._clear_feedback()
        try:
            validate_signup(form)
        except FormValidationError as exc:
            self._attach(exc)
            raise

        emit_event("registration_submitted", role=form.role, username=form.username.strip())
        try:
            response = await self._slot.submit(lambda: self._auth.register(registration_payload(form)))
        except (NetworkUnreachable, AuthError, ResolutionCancelled) as exc:
            self._attach(exc)
            raise

        if not response.success or (not response.requires_verification and not response.user):
            rejected = RegistrationRejected(response.error or "")
            emit_event("registration_rejected", role=form.role, reason=response.error or "")
            self._attach(rejected)
            raise rejected

        if response.requires_verification:
            email = response.email or form.email.strip()
            self._notice = translate("verificationSent", self._language, email=email)
            logger.info("Registration for %s awaits email verification", form.username.strip())
            return self.snapshot()

        assert response.user is not None
        self._pending_profile = profile_from_registration(form, response.user, self._clock())
        self._advance(OnboardingStep.WELCOME_BONUS)
        return self.snapshot()

    async def submit_login(self, form: Optional[LoginForm] = None) -> OnboardingSnapshot:
        self._require(OnboardingStep.LOGIN)
        form = self._with_demo_credentials(form)
        self._clear_feedback()
        try:
            validate_login(form)
        except FormValidationError as exc:
            self._attach(exc)
            raise

        try:
            resolved = await self._slot.submit(
                lambda: self._resolver.resolve(form.identifier, form.password, form.remember)
            )
        except (AuthError, ResolutionCancelled) as exc:
            self._attach(exc)
            raise
        self._finish(resolved.profile, path="login")
        return self.snapshot()

    def cancel_login(self) -> bool:
        return self._slot.cancel()

    def complete_bonus(self) -> OnboardingSnapshot:
        self._require(OnboardingStep.WELCOME_BONUS)
        assert self._pending_profile is not None
        self._finish(self._pending_profile, path="signup")
        return self.snapshot()

    # -- internals -------------------------------------------------------

    def _with_demo_credentials(self, form: Optional[LoginForm]) -> LoginForm:
        if self._demo is None:
            return form or LoginForm()
        if form is None or (not form.identifier.strip() and not form.password):
            return LoginForm(
                identifier=self._demo.identifier,
                password=self._demo.secret,
                remember=form.remember if form is not None else False,
            )
        return form

    def _ensure_active(self) -> None:
        if self._completed:
            raise IllegalTransition("onboarding has already completed")

    def _require(self, *steps: OnboardingStep) -> None:
        self._ensure_active()
        if self._step not in steps:
            raise IllegalTransition(f"action is not available from {self._step.value}")

    def _advance(self, target: OnboardingStep) -> None:
        self._ensure_active()
        if target not in FORWARD_TRANSITIONS[self._step]:
            raise IllegalTransition(f"{self._step.value} cannot move to {target.value}")
        previous = self._step
        self._history.append(previous)
        self._step = target
        self._clear_feedback()
        emit_event("onboarding_transition", source=previous, target=target, direction="forward")

    def _finish(self, profile: UserProfile, *, path: str) -> None:
        self._completed = True
        self._pending_profile = None
        self._demo = None
        emit_event("onboarding_completed", user_id=profile.id, role=profile.role, path=path)
        self._on_complete(profile)

    def _clear_feedback(self) -> None:
        self._error_key: Optional[str] = None
        self._error_detail: Optional[str] = None
        self._field_errors: Dict[str, str] = {}
        self._notice: Optional[str] = None

    def _attach(self, exc: LearnioError) -> None:
        self._error_key = exc.message_key
        self._error_detail = exc.detail or None if isinstance(exc, RegistrationRejected) else None
        if isinstance(exc, FormValidationError):
            self._field_errors = localize_errors(exc, self._language)
        logger.info("Onboarding step %s failed: %s", self._step.value, exc.message_key)


__all__ = [
    "BACK_TRANSITIONS",
    "FORWARD_TRANSITIONS",
    "OnboardingMachine",
    "OnboardingSnapshot",
    "OnboardingStep",
    "profile_from_registration",
    "registration_payload",
]
