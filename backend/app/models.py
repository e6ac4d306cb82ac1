"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Users and communities are linked many-to-many through `CommunityUser`,
whose composite primary key guarantees at most one membership per
(user, community) pair.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


class CommunityUser(SQLModel, table=True):
    """Membership link between a user and a community.

    The row carries no attributes of its own; its presence is the
    membership.
    """
    __tablename__ = "community_user"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    community_id: int = Field(foreign_key="community.id", primary_key=True)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: unique login name
    - `email`: unique contact address
    - `password_hash`: hashed password string (never store plaintext)
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    email: str = Field(index=True, nullable=False, unique=True)
    first_name: str
    last_name: str
    age: str
    gender: str
    password_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    communities: List["Community"] = Relationship(back_populates="members", link_model=CommunityUser)


class Community(SQLModel, table=True):
    """A community users can join."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    description: Optional[str] = None
    image_url: Optional[str] = None
    members: List[User] = Relationship(back_populates="communities", link_model=CommunityUser)
