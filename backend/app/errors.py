"""Application error taxonomy.

Membership and registration failures are raised as `AppError`
subclasses. Each carries a user-safe `message` and the HTTP status the
API layer maps it to; the registration errors also carry the dialog
`title` shown by the sign-up form.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for all application errors."""

    status_code = 400
    title = "Error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """Raised when a referenced community does not exist."""

    status_code = 404

    def __init__(self, message: str = "Community not found"):
        super().__init__(message)


class GenericServiceError(AppError):
    """Raised when persistence fails unexpectedly."""

    status_code = 500


class IncompleteFormError(AppError):
    """Raised when any registration field is empty."""

    title = "Missing Information"

    def __init__(self):
        super().__init__("Please fill out all the fields.")


USERNAME_MESSAGES = {
    "characters": "Username must not contain special characters or spaces.",
    "length": "Username must be between 3 and 20 characters long.",
    "consecutive": "Username cannot contain consecutive dots or underscores.",
    "edges": "Username cannot start or end with a dot or underscore.",
}


class InvalidUsernameError(AppError):
    """Raised when a username breaks one of the shape rules.

    `reason` is one of `characters`, `length`, `consecutive`, `edges`.
    """

    title = "Invalid Username"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(USERNAME_MESSAGES[reason])


class InvalidPasswordError(AppError):
    """Raised when a password is too short or lacks a letter or a digit."""

    title = "Invalid Password"

    def __init__(self):
        super().__init__(
            "Password must be at least 6 characters long and include at least one letter and one number."
        )


class RemoteFieldError(AppError):
    """Raised when the signup endpoint rejects a field.

    Only the first message of the first reported field is kept.
    """

    title = "Sign Up Error"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class RemoteTransportError(AppError):
    """Raised when the signup endpoint cannot be reached or answers garbage."""

    title = "Sign Up Error"
    status_code = 502

    def __init__(self, message: str = "There was an issue signing up. Please try again."):
        super().__init__(message)
