"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
communities, memberships). Repositories return SQLModel objects and
perform commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from . import models


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)


class CommunityRepository:
    """Read and create `Community` rows."""
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[models.Community]:
        """Return every community ordered by id."""
        stmt = select(models.Community).order_by(models.Community.id)
        return self.session.exec(stmt).all()

    def get(self, community_id: int) -> Optional[models.Community]:
        """Fetch a community by id."""
        return self.session.get(models.Community, community_id)

    def get_by_name(self, name: str) -> Optional[models.Community]:
        stmt = select(models.Community).where(models.Community.name == name)
        return self.session.exec(stmt).first()

    def create(self, community: models.Community) -> models.Community:
        self.session.add(community)
        self.session.commit()
        self.session.refresh(community)
        return community


class MembershipRepository:
    """Existence checks and inserts on the `community_user` link table."""
    def __init__(self, session: Session):
        self.session = session

    def exists(self, user_id: int, community_id: int) -> bool:
        """Return True if the user is a member of the community."""
        stmt = select(models.CommunityUser.user_id).where(
            models.CommunityUser.user_id == user_id,
            models.CommunityUser.community_id == community_id
        )
        return self.session.exec(stmt).first() is not None

    def add(self, user_id: int, community_id: int) -> bool:
        """Insert a membership row.

        Returns False when the primary key already holds the pair, which
        happens when a concurrent join committed first.
        """
        self.session.add(models.CommunityUser(user_id=user_id, community_id=community_id))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return False
        return True

