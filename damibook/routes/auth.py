"""
Authentication Routes

This module implements password authentication with server-side sessions.
The flow:
1. User registers (username + password, plus email in the "email"
   configuration) or logs in with their identity and password
2. A session is created in Redis and its opaque token is stored in an
   HTTP-only cookie
3. Logging out deletes the session and the cookie

Form errors re-render the form with a message; successful actions
redirect with 303 so the browser follows up with a GET.
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from damibook.config import settings
from damibook.database import get_db
from damibook.dependencies import get_session_token
from damibook.errors import AuthError, ConflictError, NotFoundError, StoreError, ValidationError
from damibook.limiter import limiter, AUTH_LIMIT
from damibook.models import User
from damibook.services.auth import authenticate_user, register_user
from damibook.services.sessions import SessionStore, get_session_store
from damibook.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def render_form(request: Request, template: str, error: str | None = None, status_code: int = 200, **context):
    return templates.TemplateResponse(
        request,
        template,
        {"error": error, "identity_field": settings.AUTH_IDENTITY, **context},
        status_code=status_code,
    )


async def start_session(request: Request, sessions: SessionStore, user: User) -> RedirectResponse:
    """
    Log the user in and redirect to the feed.

    Any session the browser already holds is destroyed first, so a token
    is never reused across logins.
    """
    await sessions.destroy(get_session_token(request))
    token = await sessions.create(user.id)

    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,  # JavaScript can't access (prevents XSS attacks)
        max_age=settings.SESSION_TTL_SECONDS,
        samesite="lax",  # CSRF protection
        secure=settings.SECURE_COOKIES,
    )
    return response


@router.get("/login")
async def login_form(request: Request):
    return render_form(request, "login.html")


@router.post("/login")
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Check credentials and open a session.

    The identity field is `username` or `email` depending on
    settings.AUTH_IDENTITY.
    """
    identity = email if settings.AUTH_IDENTITY == "email" else username
    try:
        user = await authenticate_user(db, identity, password)
    except (NotFoundError, AuthError) as exc:
        return render_form(request, "login.html", exc.message, status_code=401, identity=identity)

    logger.info("User %s logged in", user.id)
    return await start_session(request, sessions, user)


@router.get("/register")
async def register_form(request: Request):
    return render_form(request, "register.html")


@router.post("/register")
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
):
    """Create an account and log it in straight away."""
    try:
        user = await register_user(db, username, password, email=email or None)
    except (ValidationError, ConflictError) as exc:
        return render_form(
            request, "register.html", exc.message, status_code=400,
            username=username, email=email,
        )

    return await start_session(request, sessions, user)


@router.get("/logout")
async def logout(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Log user out by deleting the session and its cookie.

    Works for anonymous clients too; the result is always the login page.
    """
    token = get_session_token(request)
    if token:
        try:
            await sessions.destroy(token)
            logger.info("Session closed")
        except StoreError as exc:
            # The record expires with its TTL; the cookie is cleared regardless
            logger.warning("Could not delete session on logout: %s", exc)

    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
