"""Onboarding endpoints: step navigation, sign-up, login and the welcome bonus."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from .errors import IllegalTransition, LearnioError
from .onboarding import OnboardingMachine, OnboardingSnapshot, OnboardingStep
from .profiles import Role
from .session import SessionController
from .session_routes import get_session_controller, http_error
from .validation import LoginForm, SignUpForm

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])
logger = logging.getLogger(__name__)


class LanguageChoice(BaseModel):
    language: str = Field(..., min_length=1)


class UserTypeChoice(BaseModel):
    role: Role


class CancelResponse(BaseModel):
    cancelled: bool


def _machine(controller: SessionController) -> OnboardingMachine:
    machine = controller.onboarding
    if machine is None:
        raise http_error(IllegalTransition("already signed in"), controller.language)
    return machine


@router.get("", response_model=OnboardingSnapshot)
async def read_onboarding(controller: SessionController = Depends(get_session_controller)) -> OnboardingSnapshot:
    return _machine(controller).snapshot()


@router.post("/next", response_model=OnboardingSnapshot)
async def next_step(controller: SessionController = Depends(get_session_controller)) -> OnboardingSnapshot:
    try:
        return _machine(controller).next()
    except LearnioError as exc:
        raise http_error(exc, controller.language) from exc


@router.post("/back", response_model=OnboardingSnapshot)
async def previous_step(controller: SessionController = Depends(get_session_controller)) -> OnboardingSnapshot:
    try:
        return _machine(controller).back()
    except LearnioError as exc:
        raise http_error(exc, controller.language) from exc


@router.post("/language", response_model=OnboardingSnapshot)
async def choose_language(
    request: LanguageChoice,
    controller: SessionController = Depends(get_session_controller),
) -> OnboardingSnapshot:
    machine = _machine(controller)
    try:
        if machine.step is OnboardingStep.WELCOME:
            machine.open_language()
        return machine.select_language(request.language)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except LearnioError as exc:
        raise http_error(exc, controller.language) from exc


@router.post("/user-type", response_model=OnboardingSnapshot)
async def choose_user_type(
    request: UserTypeChoice,
    controller: SessionController = Depends(get_session_controller),
) -> OnboardingSnapshot:
    try:
        return _machine(controller).select_user_type(request.role)
    except LearnioError as exc:
        raise http_error(exc, controller.language) from exc


@router.post("/login-step", response_model=OnboardingSnapshot)
async def open_login(controller: SessionController = Depends(get_session_controller)) -> OnboardingSnapshot:
    try:
        return _machine(controller).open_login()
    except LearnioError as exc:
        raise http_error(exc, controller.language) from exc


@router.post("/signup", response_model=OnboardingSnapshot)
async def sign_up(
    form: SignUpForm,
    controller: SessionController = Depends(get_session_controller),
) -> OnboardingSnapshot:
    machine = _machine(controller)
    try:
        return await machine.submit_signup(form)
    except LearnioError as exc:
        raise http_error(exc, machine.language) from exc


@router.post("/login", response_model=OnboardingSnapshot)
async def log_in(
    form: LoginForm,
    controller: SessionController = Depends(get_session_controller),
) -> OnboardingSnapshot:
    machine = _machine(controller)
    try:
        return await machine.submit_login(form)
    except LearnioError as exc:
        raise http_error(exc, machine.language) from exc


@router.post("/cancel-login", response_model=CancelResponse)
async def cancel_login(controller: SessionController = Depends(get_session_controller)) -> CancelResponse:
    return CancelResponse(cancelled=_machine(controller).cancel_login())


@router.post("/bonus-complete", response_model=OnboardingSnapshot)
async def complete_bonus(controller: SessionController = Depends(get_session_controller)) -> OnboardingSnapshot:
    machine = _machine(controller)
    try:
        return machine.complete_bonus()
    except LearnioError as exc:
        raise http_error(exc, machine.language) from exc
