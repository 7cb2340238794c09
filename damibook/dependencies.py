"""
Authentication Dependencies for FastAPI Routes

This module provides dependency injection functions for authentication.
Protected routes declare `user: User = Depends(get_current_user)`; an
anonymous request never reaches the handler.

FastAPI's dependency injection system makes these reusable across routes
while keeping authentication logic centralized.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from damibook.config import settings
from damibook.database import get_db
from damibook.errors import LoginRequired
from damibook.models import User
from damibook.services.auth import get_user
from damibook.services.sessions import SessionStore, get_session_store


def get_session_token(request: Request) -> str | None:
    """Opaque session token from the request cookie, if any."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> User:
    """
    Dependency that requires an authenticated user.

    This function:
    1. Extracts the session token from the request cookie
    2. Resolves it to a user id in the session store
    3. Looks up the user in the database
    4. Returns the User object or raises LoginRequired

    LoginRequired is turned into a redirect to /login by the exception
    handler registered in main.py.
    """
    user_id = await sessions.get(get_session_token(request))
    if user_id is None:
        raise LoginRequired("Not authenticated")

    # Session is live, but the user might have been removed from the store
    user = await get_user(db, user_id)
    if not user:
        raise LoginRequired("User not found")

    return user

