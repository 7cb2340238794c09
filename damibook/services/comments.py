"""
Comment Service

Comments hang off a post. The post must exist when the comment is
written; a comment on an unknown post is dropped.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from damibook.errors import NotFoundError, ValidationError
from damibook.models import Comment, Post, User, parse_id
from damibook.utils.text import clean_content


async def get_post(db: AsyncSession, post_id) -> Post | None:
    """Get a post by id; non-numeric or out-of-range ids resolve to None."""
    post_id = parse_id(post_id)
    if post_id is None:
        return None
    return await db.get(Post, post_id)


async def create_comment(db: AsyncSession, author: User, post_id, content: str | None) -> Comment:
    """
    Attach a comment to a post.

    Raises:
        ValidationError: if the content is empty after trimming
        NotFoundError: if post_id does not resolve to a post
    """
    content = clean_content(content)
    if content is None:
        raise ValidationError("Comment is empty")

    post = await get_post(db, post_id)
    if not post:
        raise NotFoundError("Post not found")

    comment = Comment(post_id=post.id, author_id=author.id, content=content)
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    return comment
