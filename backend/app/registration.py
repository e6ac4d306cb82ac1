"""Sign-up form validation and submission.

`RegistrationForm` is an immutable snapshot of the seven sign-up fields.
`validate_form` applies the form rules fail-fast, so only the first
broken rule is reported, and `submit_registration` relays the signup
endpoint's answer with the same one-error-at-a-time behaviour.

The server-side signup endpoint reuses `validate_username` and
`validate_password` so both sides agree on the rules.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass, fields, replace

from .errors import (
    IncompleteFormError,
    InvalidPasswordError,
    InvalidUsernameError,
    RemoteFieldError,
    RemoteTransportError,
)

logger = logging.getLogger("app.registration")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6

_USERNAME_CHARS = frozenset(string.ascii_letters + string.digits + "._")
_PASSWORD_RE = re.compile(rf"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d]{{{PASSWORD_MIN_LENGTH},}}$", re.ASCII)


def _clean(value) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True)
class RegistrationForm:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    username: str = ""
    age: str = ""
    gender: str = ""
    password: str = ""

    def normalized(self) -> "RegistrationForm":
        """Return a copy with surrounding whitespace removed.

        Unset (`None`) fields become empty strings. The password is
        otherwise kept as typed.
        """
        return replace(
            self,
            first_name=_clean(self.first_name),
            last_name=_clean(self.last_name),
            email=_clean(self.email),
            username=_clean(self.username),
            age=_clean(self.age),
            gender=_clean(self.gender),
            password="" if self.password is None else self.password,
        )

    def missing_fields(self) -> list[str]:
        return [f.name for f in fields(self) if not getattr(self, f.name)]

    def as_payload(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class RegistrationResult:
    token: str
    user_id: int


def validate_username(username: str) -> None:
    """Raise `InvalidUsernameError` for the first rule the username breaks."""
    if not username or any(ch not in _USERNAME_CHARS for ch in username):
        raise InvalidUsernameError("characters")
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise InvalidUsernameError("length")
    if ".." in username or "__" in username:
        raise InvalidUsernameError("consecutive")
    if username[0] in "._" or username[-1] in "._":
        raise InvalidUsernameError("edges")


def validate_password(password: str) -> None:
    """Require 6+ ASCII letters/digits with at least one of each."""
    if not _PASSWORD_RE.fullmatch(password or ""):
        raise InvalidPasswordError()


def validate_form(form: RegistrationForm) -> RegistrationForm:
    """Validate a form and return its normalized copy.

    Checks run in order (completeness, username, password) and the
    first failure is raised.
    """
    normalized = form.normalized()
    if normalized.missing_fields():
        raise IncompleteFormError()
    validate_username(normalized.username)
    validate_password(normalized.password)
    return normalized


def first_field_error(errors: dict) -> tuple[str, str]:
    """Pick the first message of the first field in `errors`.

    Fields are taken in the mapping's own order.
    """
    field, messages = next(iter(errors.items()))
    if isinstance(messages, (list, tuple)):
        message = messages[0] if messages else ""
    else:
        message = str(messages)
    return field, str(message)


def submit_registration(form: RegistrationForm, client) -> RegistrationResult:
    """Validate `form` and create the account through `client`.

    `client` is anything with a `signup(payload: dict) -> dict` method,
    normally a `SignupClient`. Validation errors are raised before the
    client is touched.
    """
    normalized = validate_form(form)
    logger.info("signup_submit username=%s", normalized.username)
    try:
        body = client.signup(normalized.as_payload())
    except RemoteTransportError:
        raise
    except Exception:
        logger.exception("signup request failed for username=%s", normalized.username)
        raise RemoteTransportError()

    if not isinstance(body, dict):
        logger.error("signup returned a non-object body: %r", type(body).__name__)
        raise RemoteTransportError()
    errors = body.get("errors")
    if errors and isinstance(errors, dict):
        field, message = first_field_error(errors)
        logger.info("signup rejected field=%s", field)
        raise RemoteFieldError(field, message)
    try:
        result = RegistrationResult(token=str(body["token"]), user_id=int(body["user"]["id"]))
    except (KeyError, TypeError, ValueError):
        logger.error("signup response missing token or user id")
        raise RemoteTransportError()
    logger.info("signup_ok user_id=%s", result.user_id)
    return result
