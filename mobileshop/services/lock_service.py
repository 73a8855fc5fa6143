import redis
from mobileshop.utils.retry import redis_retry
from mobileshop.utils.settings import REDIS_URL
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one step, so a lock that expired and was taken
# by another checkout is never released by the previous holder
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    - per-user checkout lock (one checkout at a time per user)
    - checkout token -> order id memory, for replayed checkouts
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _lock_key(user_id: str) -> str:
        return f"checkout:user:{user_id}:lock"

    @staticmethod
    def _token_key(token: str) -> str:
        return f"checkout:token:{token}"

    @redis_retry()
    def acquire_checkout_lock(self, user_id: str, token: str, ttl: int) -> bool:
        key = self._lock_key(user_id)
        logger.info(f"Acquire lock {key} for checkout {token}")
        # SET key token NX EX ttl, expires on its own if the holder dies
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_checkout_lock(self, user_id: str, token: str) -> bool:
        key = self._lock_key(user_id)
        logger.info(f"Release lock {key} for checkout {token}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @redis_retry()
    def remember_order(self, token: str, order_id: str, ttl: int) -> None:
        self.redis.set(name=self._token_key(token), value=order_id, ex=ttl)

    @redis_retry()
    def recall_order(self, token: str) -> str | None:
        return self.redis.get(self._token_key(token))
