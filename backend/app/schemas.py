"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests.
"""

from pydantic import BaseModel
from typing import Any, Optional


class RegisterIn(BaseModel):
    """Payload for the signup endpoint.

    Every field defaults to an empty string so missing keys are reported
    through the form rules instead of a generic 422 body.
    """
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    username: str = ""
    age: str = ""
    gender: str = ""
    password: str = ""


class LoginIn(BaseModel):
    """Payload for the login endpoint."""
    username: str
    password: str


class UserOut(BaseModel):
    """Public user fields returned after signup/login."""
    id: int
    username: str
    first_name: str
    last_name: str
    email: str
    age: str
    gender: str


class TokenOut(BaseModel):
    """Authentication response containing a token and the user."""
    token: str
    user: UserOut


class CommunityOut(BaseModel):
    """Representation of a community in list responses."""
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None


class JoinIn(BaseModel):
    """Request body for joining a community.

    `community_id` is taken loosely; values that name no community are
    answered with 404 rather than a schema error.
    """
    community_id: Any = None


class JoinOut(BaseModel):
    """Join result; `status` is `joined` or `already joined`."""
    message: str
    status: str
