"""
Chat Routes - Private Conversations

- GET /chat/{user_id}: Show the conversation with another user
- POST /chat/{user_id}: Send them a message

An unknown user sends the viewer back to the feed. An empty message is
dropped and the conversation is shown again.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from damibook.database import get_db
from damibook.dependencies import get_current_user
from damibook.errors import NotFoundError, ValidationError
from damibook.limiter import limiter, WRITE_LIMIT
from damibook.models import User
from damibook.services.messaging import open_conversation, resolve_peer, send_message
from damibook.templating import templates

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/{user_id}")
async def conversation(
    request: Request,
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        context = await open_conversation(db, user, user_id)
    except NotFoundError:
        return RedirectResponse(url="/", status_code=303)

    return templates.TemplateResponse(request, "chat.html", context)


@router.post("/{user_id}")
@limiter.limit(WRITE_LIMIT)
async def message_send(
    request: Request,
    user_id: str,
    content: str = Form(""),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Send a message, then show the conversation again."""
    try:
        peer = await resolve_peer(db, user_id)
    except NotFoundError:
        return RedirectResponse(url="/", status_code=303)

    try:
        await send_message(db, user, peer, content)
    except ValidationError:
        pass  # empty message: nothing to write

    return RedirectResponse(url=f"/chat/{peer.id}", status_code=303)
