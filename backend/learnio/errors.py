"""Error taxonomy shared by the sign-in, registration and onboarding flows."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class LearnioError(Exception):
    """Base class for client-core failures that carry a localizable message key."""

    message_key = "genericError"


class NetworkUnreachable(LearnioError):
    """The remote service could not be reached or answered with a non-2xx status."""

    message_key = "networkUnreachable"

    def __init__(self, detail: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAVAILABLE = "unavailable"


class AuthError(LearnioError):
    """Terminal failure of a credential resolution attempt."""

    def __init__(self, kind: AuthErrorKind, detail: str = "") -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail

    @property
    def message_key(self) -> str:  # type: ignore[override]
        if self.kind is AuthErrorKind.INVALID_CREDENTIALS:
            return "invalidCredentials"
        return "authUnavailable"


class InvalidCredentialsError(AuthError):
    def __init__(self, detail: str = "") -> None:
        super().__init__(AuthErrorKind.INVALID_CREDENTIALS, detail)


class AuthUnavailableError(AuthError):
    def __init__(self, detail: str = "") -> None:
        super().__init__(AuthErrorKind.UNAVAILABLE, detail)


class FormValidationError(LearnioError):
    """Client-side input errors keyed by form field; values are message keys."""

    message_key = "formInvalid"

    def __init__(self, errors: Dict[str, str], params: Optional[Dict[str, Dict[str, str]]] = None) -> None:
        super().__init__(", ".join(sorted(errors)))
        self.errors = dict(errors)
        self.params = dict(params or {})


class RegistrationRejected(LearnioError):
    """The reachable service refused to create the account (duplicate username, etc.)."""

    message_key = "registrationRejected"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or "registration rejected")
        self.detail = detail


class IllegalTransition(LearnioError):
    """An onboarding action was requested from a step that does not allow it."""

    message_key = "illegalTransition"


class NotSignedIn(LearnioError):
    message_key = "notSignedIn"


class ResolutionInFlight(LearnioError):
    message_key = "loginInFlight"


class ResolutionCancelled(LearnioError):
    message_key = "loginCancelled"


class StorageError(LearnioError):
    message_key = "storageError"


__all__ = [
    "AuthError",
    "AuthErrorKind",
    "AuthUnavailableError",
    "FormValidationError",
    "IllegalTransition",
    "InvalidCredentialsError",
    "LearnioError",
    "NetworkUnreachable",
    "NotSignedIn",
    "RegistrationRejected",
    "ResolutionCancelled",
    "ResolutionInFlight",
    "StorageError",
]
