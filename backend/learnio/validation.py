"""Client-side checks for the sign-up and login forms.

Failures raise :class:`FormValidationError` keyed by form field, with message
keys from :mod:`learnio.i18n` as values, and never reach the resolver or the
registration call.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .errors import FormValidationError
from .i18n import translate
from .profiles import VALID_GRADES, Role

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
MIN_NAME_LENGTH = 2
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 8


class SignUpForm(BaseModel):
    role: Role = "student"
    name: str = ""
    username: str = ""
    email: str = ""
    password: str = Field("", repr=False)
    confirm_password: str = Field("", repr=False)
    grade: Optional[int] = None
    school: str = ""
    teacher_code: str = Field("", repr=False)
    avatar: Optional[str] = None
    accept_terms: bool = False


class LoginForm(BaseModel):
    identifier: str = ""
    password: str = Field("", repr=False)
    remember: bool = False


def password_requirements(password: str) -> List[str]:
    """Return the message keys of every unmet password requirement."""
    unmet: List[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        unmet.append("reqLength")
    if not re.search(r"[A-Z]", password):
        unmet.append("reqUppercase")
    if not re.search(r"[a-z]", password):
        unmet.append("reqLowercase")
    if not re.search(r"\d", password):
        unmet.append("reqNumber")
    return unmet


def password_strength(password: str) -> int:
    return max(0, min(100, (4 - len(password_requirements(password))) * 25))


def validate_signup(form: SignUpForm) -> None:
    errors: Dict[str, str] = {}
    params: Dict[str, Dict[str, str]] = {}

    name = form.name.strip()
    if not name:
        errors["name"] = "nameRequired"
    elif len(name) < MIN_NAME_LENGTH:
        errors["name"] = "nameTooShort"

    username = form.username.strip()
    if not username:
        errors["username"] = "signupUsernameRequired"
    elif len(username) < MIN_USERNAME_LENGTH:
        errors["username"] = "usernameTooShort"
    elif not USERNAME_PATTERN.match(username):
        errors["username"] = "usernameInvalid"

    if form.role == "student" and form.grade not in VALID_GRADES:
        errors["grade"] = "gradeRequired"
    if form.role == "teacher" and not form.teacher_code.strip():
        errors["teacher_code"] = "teacherCodeRequired"

    email = form.email.strip()
    if not email:
        errors["email"] = "emailRequired"
    elif not EMAIL_PATTERN.match(email):
        errors["email"] = "emailInvalid"

    if not form.password:
        errors["password"] = "passwordRequired"
    else:
        unmet = password_requirements(form.password)
        if unmet:
            errors["password"] = "passwordWeak"
            params["password"] = {"requirements": ",".join(unmet)}

    if not form.confirm_password:
        errors["confirm_password"] = "confirmPasswordRequired"
    elif form.password != form.confirm_password:
        errors["confirm_password"] = "passwordMismatch"

    if not form.accept_terms:
        errors["terms"] = "termsRequired"

    if errors:
        raise FormValidationError(errors, params)


def validate_login(form: LoginForm) -> None:
    errors: Dict[str, str] = {}
    if not form.identifier.strip():
        errors["identifier"] = "usernameRequired"
    if not form.password.strip():
        errors["password"] = "passwordRequired"
    if errors:
        raise FormValidationError(errors)


def localize_errors(error: FormValidationError, language: str) -> Dict[str, str]:
    """Render every field error of ``error`` in ``language``."""
    rendered: Dict[str, str] = {}
    for field_name, key in error.errors.items():
        field_params = dict(error.params.get(field_name, {}))
        if "requirements" in field_params:
            field_params["requirements"] = ", ".join(
                translate(item, language) for item in field_params["requirements"].split(",")
            )
        rendered[field_name] = translate(key, language, **field_params)
    return rendered


__all__ = [
    "LoginForm",
    "SignUpForm",
    "localize_errors",
    "password_requirements",
    "password_strength",
    "validate_login",
    "validate_signup",
]
