"""
Database Models for Damibook

This module defines the SQLAlchemy ORM models for the application:
- User: Registered members who post, comment and chat
- Post: Entries in the public feed
- Comment: Replies attached to a post
- Message: Private messages between two users

Every row is append-only: nothing is updated or deleted once written.
References between rows are plain foreign keys; the services load the
referenced rows explicitly with selectinload() when a view needs them.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

from damibook.config import settings


# Base class for all ORM models
Base = declarative_base()


# Largest value an Integer primary key can hold (PostgreSQL INT4)
MAX_ID = 2**31 - 1


def parse_id(value) -> int | None:
    """
    Turn a raw path value into a primary key.

    Anything that is not an integer in 1..MAX_ID returns None, since no
    row can have that id.
    """
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    if not 0 < value <= MAX_ID:
        return None
    return value


def utcnow():
    """Server-assigned creation timestamp (naive UTC)."""
    return datetime.utcnow()


class User(Base):
    """
    User model representing a registered member.

    Depending on AUTH_IDENTITY, users log in with their username or their
    email. The identity column is unique only when ENFORCE_UNIQUE_IDENTITY
    is set.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Display name, and login identity in the "username" configuration
    username = Column(
        String(64),
        index=True,
        nullable=False,
        unique=settings.ENFORCE_UNIQUE_IDENTITY and settings.AUTH_IDENTITY == "username",
    )

    # Login identity in the "email" configuration, unused otherwise
    email = Column(
        String(320),
        index=True,
        nullable=True,
        unique=settings.ENFORCE_UNIQUE_IDENTITY and settings.AUTH_IDENTITY == "email",
    )

    # bcrypt hash, never the password itself
    password_hash = Column(String(128), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)


class Post(Base):
    """
    Post model representing an entry in the public feed.
    """
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign key to User - who wrote this post
    author_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    content = Column(Text, nullable=False)

    # Indexed because the feed is ordered by it
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)

    # Many-to-one relationship with User
    author = relationship("User", lazy="raise")


class Comment(Base):
    """
    Comment model representing a reply attached to a post.
    """
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), index=True, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)

    # lazy="raise": lazy loading would fail in async context ("MissingGreenlet"),
    # so every access must be preloaded with selectinload()
    post = relationship("Post", lazy="raise")
    author = relationship("User", lazy="raise")


class Message(Base):
    """
    Message model representing a private message from one user to another.

    A conversation between two users is every message whose
    (sender, recipient) pair is either (a, b) or (b, a).
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)

    # Two foreign keys to the same table, so each relationship names its own
    sender = relationship("User", foreign_keys=[sender_id], lazy="raise")
    recipient = relationship("User", foreign_keys=[recipient_id], lazy="raise")
