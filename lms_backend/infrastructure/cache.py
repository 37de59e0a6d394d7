import json
import redis
from typing import Optional, Any
from ..config import settings

ANNOUNCEMENTS_KEY = "announcements:list"
RESOURCES_KEY = "resources:list"

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

def get_cache(key: str) -> Optional[Any]:
    """Получить значение из кэша"""
    try:
        client = get_redis()
        value = client.get(key)
        if value is not None:
            return json.loads(value)
    except (redis.RedisError, ValueError):
        # Redis недоступен или в кэше мусор: считаем промахом
        pass
    return None

def set_cache(key: str, value: Any, ttl: int = None) -> bool:
    """Сохранить значение в кэш"""
    try:
        client = get_redis()
        ttl = ttl or settings.CACHE_TTL
        client.setex(key, ttl, json.dumps(value, ensure_ascii=False))
        return True
    except (redis.RedisError, TypeError):
        return False

def delete_cache(key: str) -> bool:
    """Удалить значение из кэша"""
    try:
        client = get_redis()
        client.delete(key)
        return True
    except redis.RedisError:
        return False
