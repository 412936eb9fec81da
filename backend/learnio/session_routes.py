"""REST endpoints the rendering layer uses to read and steer the session."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from .errors import (
    AuthUnavailableError,
    FormValidationError,
    IllegalTransition,
    InvalidCredentialsError,
    LearnioError,
    NetworkUnreachable,
    NotSignedIn,
    RegistrationRejected,
    ResolutionCancelled,
    ResolutionInFlight,
    StorageError,
)
from .i18n import translate
from .profiles import Credentials
from .session import SessionController, SessionSnapshot, create_session_controller
from .validation import localize_errors

router = APIRouter(prefix="/api/session", tags=["session"])
logger = logging.getLogger(__name__)

_controller: Optional[SessionController] = None


def get_session_controller() -> SessionController:
    """Process-wide controller, restored from storage on first use."""
    global _controller
    if _controller is None:
        _controller = create_session_controller()
        _controller.restore()
    return _controller


def reset_session_controller() -> None:
    global _controller
    _controller = None


_STATUS_BY_ERROR = (
    (FormValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (AuthUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (NetworkUnreachable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RegistrationRejected, status.HTTP_400_BAD_REQUEST),
    (ResolutionInFlight, status.HTTP_409_CONFLICT),
    (ResolutionCancelled, status.HTTP_409_CONFLICT),
    (IllegalTransition, status.HTTP_409_CONFLICT),
    (NotSignedIn, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: LearnioError, language: str) -> HTTPException:
    """Translate a client-core error into an HTTP error with a localized body."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped
            break
    detail: Dict[str, Any] = {
        "error": exc.message_key,
        "message": translate(exc.message_key, language),
    }
    if isinstance(exc, FormValidationError):
        detail["fields"] = localize_errors(exc, language)
    return HTTPException(status_code=status_code, detail=detail)


class LanguageRequest(BaseModel):
    language: str = Field(..., min_length=1)


class NavigateRequest(BaseModel):
    reference: str = Field(..., min_length=1)


class NavigateResponse(BaseModel):
    accepted: bool
    session: SessionSnapshot


class DemoRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)


@router.get("", response_model=SessionSnapshot)
async def read_session(controller: SessionController = Depends(get_session_controller)) -> SessionSnapshot:
    return controller.snapshot()


@router.post("/language", response_model=SessionSnapshot)
async def change_language(
    request: LanguageRequest,
    controller: SessionController = Depends(get_session_controller),
) -> SessionSnapshot:
    try:
        controller.change_language(request.language)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return controller.snapshot()


@router.post("/navigate", response_model=NavigateResponse)
async def navigate(
    request: NavigateRequest,
    controller: SessionController = Depends(get_session_controller),
) -> NavigateResponse:
    accepted = controller.navigate(request.reference)
    return NavigateResponse(accepted=accepted, session=controller.snapshot())


@router.post("/dashboard", response_model=SessionSnapshot)
async def go_to_dashboard(controller: SessionController = Depends(get_session_controller)) -> SessionSnapshot:
    if controller.profile is None:
        raise http_error(NotSignedIn("no active profile"), controller.language)
    controller.go_to_dashboard()
    return controller.snapshot()


@router.post("/logout", response_model=SessionSnapshot)
async def logout(controller: SessionController = Depends(get_session_controller)) -> SessionSnapshot:
    controller.logout()
    return controller.snapshot()


@router.post("/restore", response_model=SessionSnapshot)
async def restore(controller: SessionController = Depends(get_session_controller)) -> SessionSnapshot:
    try:
        controller.restore()
    except StorageError as exc:
        raise http_error(exc, controller.language) from exc
    return controller.snapshot()


@router.post("/demo", response_model=SessionSnapshot)
async def start_demo(
    request: DemoRequest,
    controller: SessionController = Depends(get_session_controller),
) -> SessionSnapshot:
    if controller.start_learning(Credentials(identifier=request.username, secret=request.password)) is None:
        raise http_error(IllegalTransition("already signed in"), controller.language)
    return controller.snapshot()
