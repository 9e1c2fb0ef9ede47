import redis.asyncio as redis
from typing import Optional
from portal.core.config import settings
from portal.schemas.auth import SessionContext

# Redis client instance
redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get Redis client instance."""
    global redis_client
    if redis_client is None:
        redis_client = await redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True
        )
    return redis_client


async def close_redis():
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.close()
        redis_client = None


class SessionStore:
    """Keep signed-in session contexts in Redis, keyed by backend token.

    A "remember me" login lives for REMEMBER_ME_TTL_SECONDS, any other login
    for SESSION_TTL_SECONDS.
    """

    def __init__(self):
        self.prefix = "session:"

    def _get_key(self, token: str) -> str:
        return f"{self.prefix}{token}"

    def _expire_for(self, session: SessionContext) -> int:
        if session.remember_me:
            return settings.REMEMBER_ME_TTL_SECONDS
        return settings.SESSION_TTL_SECONDS

    async def create_session(self, session: SessionContext):
        client = await get_redis()
        await client.set(
            self._get_key(session.token),
            session.model_dump_json(),
            ex=self._expire_for(session)
        )

    async def get_session(self, token: str) -> Optional[SessionContext]:
        client = await get_redis()
        value = await client.get(self._get_key(token))
        if not value:
            return None
        return SessionContext.model_validate_json(value)

    async def delete_session(self, token: str):
        client = await get_redis()
        await client.delete(self._get_key(token))


# Global instance
session_store = SessionStore()
