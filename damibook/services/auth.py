"""
Password Authentication Service

This module handles account creation and credential checks:
- Passwords are hashed with bcrypt through passlib's CryptContext
- The login identity is the username or the email, depending on
  settings.AUTH_IDENTITY
- Identity uniqueness is checked here when settings.ENFORCE_UNIQUE_IDENTITY
  is set (the unique constraint on the column backs it up)

Session issuance lives in services/sessions.py; these functions only deal
with users.
"""

import logging

from email_validator import validate_email, EmailNotValidError
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from damibook.config import settings
from damibook.errors import AuthError, ConflictError, NotFoundError, ValidationError
from damibook.models import User, parse_id

logger = logging.getLogger(__name__)

# Password hashing context
# bcrypt salts every hash, so two users with the same password get different hashes
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def identity_column():
    """Column used to look users up at login."""
    return User.email if settings.AUTH_IDENTITY == "email" else User.username


def normalize_email(email: str) -> str:
    """
    Validate an email address and return its normalized form.

    Raises:
        ValidationError: if the address is malformed
    """
    try:
        # Deliverability would need DNS lookups, the format check is enough here
        result = validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(str(exc)) from exc
    return result.normalized


async def get_user_by_identity(db: AsyncSession, identity: str) -> User | None:
    """
    Get the user registered under the given login identity.

    When uniqueness is not enforced several users may share an identity;
    the oldest account wins.
    """
    result = await db.execute(
        select(User).filter(identity_column() == identity).order_by(User.id)
    )
    return result.scalars().first()


async def get_user(db: AsyncSession, user_id) -> User | None:
    """
    Get a user by id.

    Accepts raw path values: anything that is not a valid id (see
    parse_id) resolves to None instead of raising.
    """
    user_id = parse_id(user_id)
    if user_id is None:
        return None
    return await db.get(User, user_id)


async def register_user(
    db: AsyncSession,
    username: str,
    password: str,
    email: str | None = None,
) -> User:
    """
    Create a new user account.

    Args:
        db: Database session
        username: Display name (and login identity in the "username" configuration)
        password: Plain password, hashed before storage
        email: Required in the "email" configuration, ignored otherwise

    Returns:
        The persisted User

    Raises:
        ValidationError: if a required field is missing or the email is malformed
        ConflictError: if the identity is taken and uniqueness is enforced
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")

    if settings.AUTH_IDENTITY == "email":
        if not email or not email.strip():
            raise ValidationError("Email is required")
        email = normalize_email(email.strip())
        identity = email
    else:
        email = None
        identity = username

    if settings.ENFORCE_UNIQUE_IDENTITY:
        existing = await get_user_by_identity(db, identity)
        if existing:
            raise ConflictError(f"{settings.AUTH_IDENTITY.capitalize()} is already taken")

    user = User(username=username, email=email, password_hash=get_password_hash(password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Two registrations raced past the check above
        await db.rollback()
        raise ConflictError(f"{settings.AUTH_IDENTITY.capitalize()} is already taken") from exc
    await db.refresh(user)

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


async def authenticate_user(db: AsyncSession, identity: str, password: str) -> User:
    """
    Check credentials and return the matching user.

    Raises:
        NotFoundError: if no user has this identity
        AuthError: if the password does not match
    """
    identity = (identity or "").strip()
    if settings.AUTH_IDENTITY == "email" and identity:
        # Compare against the stored normalized form; a malformed address
        # cannot belong to anyone
        try:
            identity = normalize_email(identity)
        except ValidationError:
            raise NotFoundError("User not found")

    user = await get_user_by_identity(db, identity) if identity else None
    if not user:
        raise NotFoundError("User not found")

    if not password or not verify_password(password, user.password_hash):
        logger.warning("Failed login for user id=%s", user.id)
        raise AuthError("Incorrect password")

    return user
