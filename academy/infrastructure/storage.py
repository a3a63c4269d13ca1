import redis
from typing import Optional
from ..config import settings
from ..domain.errors import StorageAccessError

_redis_client: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


class RedisKeyValueStorage:
    """String key-value storage; every Redis failure becomes StorageAccessError."""

    def __init__(self, client_factory=get_redis):
        self.client_factory = client_factory

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self.client_factory().get(key)
        except redis.RedisError as e:
            raise StorageAccessError(f"read {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            self.client_factory().set(key, value)
        except redis.RedisError as e:
            raise StorageAccessError(f"write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self.client_factory().delete(key)
        except redis.RedisError as e:
            raise StorageAccessError(f"delete {key}: {e}") from e
