from __future__ import annotations

import pytest

from learnio.errors import FormValidationError
from learnio.validation import (
    LoginForm,
    SignUpForm,
    localize_errors,
    password_requirements,
    password_strength,
    validate_login,
    validate_signup,
)


def _form(**overrides: object) -> SignUpForm:
    data = {
        "role": "student",
        "name": "Priya",
        "username": "priya_9",
        "email": "priya@example.org",
        "password": "Mango123",
        "confirm_password": "Mango123",
        "grade": 9,
        "accept_terms": True,
    }
    data.update(overrides)
    return SignUpForm.model_validate(data)


def _errors(form: SignUpForm) -> dict[str, str]:
    with pytest.raises(FormValidationError) as excinfo:
        validate_signup(form)
    return excinfo.value.errors


def test_valid_student_form_passes() -> None:
    validate_signup(_form())


def test_empty_form_reports_every_field() -> None:
    errors = _errors(SignUpForm())
    assert errors == {
        "name": "nameRequired",
        "username": "signupUsernameRequired",
        "grade": "gradeRequired",
        "email": "emailRequired",
        "password": "passwordRequired",
        "confirm_password": "confirmPasswordRequired",
        "terms": "termsRequired",
    }


@pytest.mark.parametrize(
    ("overrides", "field", "key"),
    [
        ({"name": "P"}, "name", "nameTooShort"),
        ({"username": "pk"}, "username", "usernameTooShort"),
        ({"username": "priya-9"}, "username", "usernameInvalid"),
        ({"email": "priya@example"}, "email", "emailInvalid"),
        ({"grade": 5}, "grade", "gradeRequired"),
        ({"confirm_password": "Mango124"}, "confirm_password", "passwordMismatch"),
    ],
)
def test_field_rules(overrides: dict, field: str, key: str) -> None:
    assert _errors(_form(**overrides)) == {field: key}


def test_teacher_needs_code_but_no_grade() -> None:
    assert _errors(_form(role="teacher", grade=None)) == {"teacher_code": "teacherCodeRequired"}
    validate_signup(_form(role="teacher", grade=None, teacher_code="T-1"))


def test_weak_password_lists_requirements_in_language() -> None:
    with pytest.raises(FormValidationError) as excinfo:
        validate_signup(_form(password="mango", confirm_password="mango"))
    assert excinfo.value.errors == {"password": "passwordWeak"}

    assert localize_errors(excinfo.value, "en")["password"] == (
        "Password must have: 8+ characters, uppercase letter, number"
    )
    assert "बड़ा अक्षर" in localize_errors(excinfo.value, "hi")["password"]


def test_password_strength_scores() -> None:
    assert password_strength("") == 0
    assert password_strength("abc") == 25
    assert password_strength("abcDEF") == 50
    assert password_strength("abcDEF12") == 100
    assert password_requirements("abcDEF12") == []


def test_login_requires_identifier_and_password() -> None:
    with pytest.raises(FormValidationError) as excinfo:
        validate_login(LoginForm(identifier="  ", password=""))
    assert excinfo.value.errors == {"identifier": "usernameRequired", "password": "passwordRequired"}
    validate_login(LoginForm(identifier="grade6", password="demo123"))
