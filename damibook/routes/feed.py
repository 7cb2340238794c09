"""
Feed Routes - Posts and Comments

This module handles the write side of the feed:
- POST /posts: Publish a post
- POST /posts/{post_id}/comments: Comment on a post

The feed itself is rendered by GET / in main.py. Both endpoints redirect
back to the feed whatever happens; empty content and unknown posts are
silently dropped.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from damibook.database import get_db
from damibook.dependencies import get_current_user
from damibook.errors import NotFoundError, ValidationError
from damibook.limiter import limiter, WRITE_LIMIT
from damibook.models import User
from damibook.services.comments import create_comment
from damibook.services.feed import create_post

router = APIRouter(prefix="/posts", tags=["feed"])


def back_to_feed() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


@router.post("")
@limiter.limit(WRITE_LIMIT)
async def post_create(
    request: Request,
    content: str = Form(""),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Publish a post, then go back to the feed."""
    try:
        await create_post(db, user, content)
    except ValidationError:
        pass  # empty post: nothing to write
    return back_to_feed()


@router.post("/{post_id}/comments")
@limiter.limit(WRITE_LIMIT)
async def comment_create(
    request: Request,
    post_id: str,
    content: str = Form(""),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Comment on a post, then go back to the feed.

    post_id is taken as a string so that a malformed id is treated like a
    missing post instead of failing request validation.
    """
    try:
        await create_comment(db, user, post_id, content)
    except (ValidationError, NotFoundError):
        pass  # empty comment or unknown post: nothing to write
    return back_to_feed()
