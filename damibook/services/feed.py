"""
Feed Service - Posts and the Home Page

This module builds the home page data and creates posts:
- Posts are listed newest-first, each with its author
- Comments are listed oldest-first, each with its author and post
- The viewer sees every other user so a conversation can be opened

Ordering ties (same created_at) are broken by id so the order is total.
No pagination: every post and comment is loaded.
"""

from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from damibook.errors import ValidationError
from damibook.models import Comment, Post, User
from damibook.utils.text import clean_content


async def list_posts(db: AsyncSession) -> list[Post]:
    """All posts, newest first, with authors loaded."""
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def list_comments(db: AsyncSession) -> list[Comment]:
    """All comments, oldest first, with authors and parent posts loaded."""
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author), selectinload(Comment.post))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(result.scalars().all())


async def list_other_users(db: AsyncSession, viewer: User) -> list[User]:
    result = await db.execute(
        select(User).filter(User.id != viewer.id).order_by(User.username, User.id)
    )
    return list(result.scalars().all())


async def list_feed(db: AsyncSession, viewer: User) -> dict:
    """
    Load everything the home page shows.

    Args:
        db: Database session
        viewer: The logged-in user

    Returns:
        Dict with:
        - user: the viewer
        - others: every other user
        - posts: all posts, newest first
        - comments: all comments, oldest first
        - comments_by_post: post id -> that post's comments, oldest first
    """
    posts = await list_posts(db)
    comments = await list_comments(db)

    # Comments are already sorted, so each bucket stays oldest-first
    comments_by_post = defaultdict(list)
    for comment in comments:
        comments_by_post[comment.post_id].append(comment)

    return {
        "user": viewer,
        "others": await list_other_users(db, viewer),
        "posts": posts,
        "comments": comments,
        "comments_by_post": dict(comments_by_post),
    }


async def create_post(db: AsyncSession, author: User, content: str | None) -> Post:
    """
    Publish a post.

    Raises:
        ValidationError: if the content is empty after trimming
    """
    content = clean_content(content)
    if content is None:
        raise ValidationError("Post is empty")

    post = Post(author_id=author.id, content=content)
    db.add(post)
    await db.commit()
    await db.refresh(post)
    return post
