"""
Session Store - Redis-backed Login Sessions

A session maps an opaque token, held by the browser in an HTTP-only cookie,
to the id of the logged-in user. Sessions live in Redis with a TTL, so they
survive process restarts and expire on their own.

Redis data structures used:
- Strings: session:<token> -> user id, with EXPIRE set to the session TTL
"""

import logging
import secrets

import redis.asyncio as redis
from redis.exceptions import RedisError

from damibook.config import settings
from damibook.errors import StoreError

logger = logging.getLogger(__name__)

KEY_PREFIX = "session:"


# Create async Redis client
# - decode_responses=True: Return strings instead of bytes for easier handling
redis_client = redis.from_url(
    settings.REDIS_URL,
    encoding="utf-8",
    decode_responses=True
)


class SessionStore:
    """
    Create, resolve and destroy login sessions.

    Every Redis failure is re-raised as StoreError so routes only deal
    with application errors.
    """

    def __init__(self, client, ttl: int = settings.SESSION_TTL_SECONDS):
        self.client = client
        self.ttl = ttl

    async def create(self, user_id: int) -> str:
        """Bind a new token to user_id and return the token."""
        token = secrets.token_urlsafe(32)
        try:
            await self.client.set(KEY_PREFIX + token, str(user_id), ex=self.ttl)
        except RedisError as exc:
            raise StoreError("Session store unavailable") from exc
        return token

    async def get(self, token: str | None) -> int | None:
        """Return the user id bound to token, or None if there is no live session."""
        if not token:
            return None
        try:
            value = await self.client.get(KEY_PREFIX + token)
        except RedisError as exc:
            raise StoreError("Session store unavailable") from exc
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning("Dropping malformed session record")
            await self.destroy(token)
            return None

    async def destroy(self, token: str | None):
        """Delete the session; unknown or empty tokens are ignored."""
        if not token:
            return
        try:
            await self.client.delete(KEY_PREFIX + token)
        except RedisError as exc:
            raise StoreError("Session store unavailable") from exc


def get_session_store() -> SessionStore:
    """FastAPI dependency returning the process-wide session store."""
    return SessionStore(redis_client)
