"""
Messaging Service - Private Conversations

A conversation between two users is the set of messages either of them
sent to the other, oldest first. The query is symmetric, so both sides
see the same messages in the same order.
"""

from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from damibook.errors import NotFoundError, ValidationError
from damibook.models import Message, User
from damibook.services.auth import get_user
from damibook.utils.text import clean_content


async def resolve_peer(db: AsyncSession, peer_id) -> User:
    """
    Look up the other participant of a conversation.

    Raises:
        NotFoundError: if peer_id does not resolve to a user
    """
    peer = await get_user(db, peer_id)
    if not peer:
        raise NotFoundError("User not found")
    return peer


async def list_conversation(db: AsyncSession, a: User, b: User) -> list[Message]:
    """Messages exchanged between a and b, oldest first, with sender and recipient loaded."""
    result = await db.execute(
        select(Message)
        .options(selectinload(Message.sender), selectinload(Message.recipient))
        .filter(
            or_(
                and_(Message.sender_id == a.id, Message.recipient_id == b.id),
                and_(Message.sender_id == b.id, Message.recipient_id == a.id),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())


async def open_conversation(db: AsyncSession, viewer: User, peer_id) -> dict:
    """
    Load the conversation between the viewer and another user.

    Returns:
        Dict with me (the viewer), other (the peer) and messages

    Raises:
        NotFoundError: if peer_id does not resolve to a user
    """
    peer = await resolve_peer(db, peer_id)
    return {
        "me": viewer,
        "other": peer,
        "messages": await list_conversation(db, viewer, peer),
    }


async def send_message(db: AsyncSession, sender: User, peer: User, content: str | None) -> Message:
    """
    Send a private message.

    The caller resolves the peer first (see resolve_peer) so it knows
    where to redirect even when the content is rejected.

    Raises:
        ValidationError: if the content is empty after trimming
    """
    content = clean_content(content)
    if content is None:
        raise ValidationError("Message is empty")

    message = Message(sender_id=sender.id, recipient_id=peer.id, content=content)
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message
