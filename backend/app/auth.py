"""Bearer-token authentication for the community endpoints.

`get_current_user` resolves the JWT issued by `/auth/register` or
`/auth/login` to a `User` loaded through the request's own database
session, so the membership service works on an attached instance.
"""

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
import logging
from sqlmodel import Session
from . import models, repositories
from .database import get_session
from .services import JWT_SECRET, JWT_ALGORITHM

bearer_scheme = HTTPBearer()
logger = logging.getLogger("app.auth")


def user_id_from_token(token: str) -> int:
    """Return the `user_id` claim of a valid token.

    Raises HTTPException(401) when the token is expired, forged or
    carries no usable user id.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')
    try:
        return int(payload['user_id'])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail='invalid token payload')


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency returning the authenticated user.

    FastAPI caches `get_session` per request, so the user belongs to the
    same session the route handler receives.
    """
    user_id = user_id_from_token(credentials.credentials)
    user = repositories.UserRepository(db).get(user_id)
    if not user:
        logger.info("token for unknown user id=%s", user_id)
        raise HTTPException(status_code=401, detail='user not found')
    return user
