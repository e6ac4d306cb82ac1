"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they perform validation, execute
domain logic and persist aggregates via repositories.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from passlib.context import CryptContext
import jwt
from typing import Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from . import models, repositories
from .config import settings
from .errors import AppError, GenericServiceError, NotFoundError
from .registration import RegistrationForm, validate_password, validate_username

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
JWT_SECRET = settings.JWT_SECRET
JWT_ALGORITHM = settings.JWT_ALGORITHM
JWT_EXPIRE_HOURS = settings.JWT_EXPIRE_HOURS

logger = logging.getLogger("app.services")


def issue_token(user: models.User) -> str:
    """Sign a JWT carrying `user_id` and `username`."""
    expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS)
    payload = {"user_id": user.id, "username": user.username, "exp": int(expire.timestamp())}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def user_payload(user: models.User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'email': user.email,
        'age': user.age,
        'gender': user.gender,
    }


class AuthService:
    """Account creation and login."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def registration_errors(self, form: RegistrationForm) -> Dict[str, List[str]]:
        """Collect field errors for a normalized form.

        Fields appear in the order they are checked: missing fields
        first, then username shape, password shape and uniqueness.
        """
        errors: Dict[str, List[str]] = {}
        for field in form.missing_fields():
            errors[field] = [f"The {field.replace('_', ' ')} field is required."]
        if form.username:
            try:
                validate_username(form.username)
            except AppError as e:
                errors.setdefault('username', []).append(e.message)
        if form.password:
            try:
                validate_password(form.password)
            except AppError as e:
                errors.setdefault('password', []).append(e.message)
        if form.username and self.user_repo.get_by_username(form.username):
            errors.setdefault('username', []).append('The username has already been taken.')
        if form.email and self.user_repo.get_by_email(form.email):
            errors.setdefault('email', []).append('The email has already been taken.')
        return errors

    def register(self, form: RegistrationForm) -> models.User:
        """Create a new user with a hashed password.

        The form must already be free of `registration_errors`.
        """
        u = models.User(
            username=form.username,
            email=form.email,
            first_name=form.first_name,
            last_name=form.last_name,
            age=form.age,
            gender=form.gender,
            password_hash=PWD_CTX.hash(form.password),
        )
        user = self.user_repo.create(u)
        logger.info("user registered id=%s username=%s", user.id, user.username)
        return user

    def authenticate(self, username: str, password: str) -> Optional[models.User]:
        """Verify credentials and return the user, or `None` on failure."""
        user = self.user_repo.get_by_username(username)
        if not user:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        return user


def _community_pk(value) -> Optional[int]:
    """Coerce a raw community id to an int, or `None` if it cannot name a row."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class JoinOutcome(str, Enum):
    JOINED = "joined"
    ALREADY_MEMBER = "already joined"


JOIN_MESSAGES = {
    JoinOutcome.JOINED: 'Successfully joined community',
    JoinOutcome.ALREADY_MEMBER: 'User already in the community',
}


class MembershipService:
    """List communities, join them and report membership per community."""
    def __init__(self, session: Session):
        self.session = session
        self.community_repo = repositories.CommunityRepository(session)
        self.membership_repo = repositories.MembershipRepository(session)

    def list_communities(self) -> List[models.Community]:
        return self.community_repo.list_all()

    def join(self, user: models.User, community_id) -> JoinOutcome:
        """Make `user` a member of the community.

        Joining twice is a no-op reported as `ALREADY_MEMBER`. The
        existence check is only a shortcut; the link table's primary key
        decides when two joins race.
        """
        resolved = _community_pk(community_id)
        if resolved is None:
            raise NotFoundError()
        try:
            community = self.community_repo.get(resolved)
            if not community:
                raise NotFoundError()
            if self.membership_repo.exists(user.id, community.id):
                return JoinOutcome.ALREADY_MEMBER
            if not self.membership_repo.add(user.id, community.id):
                return JoinOutcome.ALREADY_MEMBER
            logger.info("user %s joined community %s", user.id, community.id)
            return JoinOutcome.JOINED
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("join failed user=%s community=%s", user.id, community_id)
            raise GenericServiceError('Unable to join community')

    def membership_status(self, user: models.User) -> Dict[int, bool]:
        """Return `{community_id: is_member}` for every community."""
        return {
            c.id: self.membership_repo.exists(user.id, c.id)
            for c in self.community_repo.list_all()
        }
