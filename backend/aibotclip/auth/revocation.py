"""JWT token revocation using Redis blacklist.

Sign-out blacklists the token until its natural expiry.
"""

import logging
import time

from redis.exceptions import RedisError

from aibotclip.utils.redis_client import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Add token to revocation list.

        Args:
            token: JWT token to revoke
            expires_at: Unix timestamp when token naturally expires

        Returns:
            True if successfully revoked
        """
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            # Token already expired, no need to blacklist
            return True

        redis_client = await get_redis()
        try:
            await redis_client.setex(
                f"revoked:{token}",
                ttl,
                str(int(time.time())),  # Revocation timestamp
            )
            return True
        except RedisError as e:
            logger.error(f"Failed to revoke token: {e}")
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        """Check if token is revoked.

        Fails closed: a Redis error counts as revoked.
        """
        redis_client = await get_redis()
        try:
            exists = await redis_client.exists(f"revoked:{token}")
            return exists > 0
        except RedisError as e:
            logger.error(f"Failed to check token revocation: {e}")
            return True
