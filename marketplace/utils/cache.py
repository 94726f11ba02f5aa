"""In-memory caching with TTL support"""

from datetime import datetime, timedelta
import threading
from typing import Any, Optional, Dict


class InMemoryCache:
    """Simple thread-safe in-memory cache with TTL support"""

    def __init__(self):
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._access_count = 0
        self._hit_count = 0

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""
        with self._lock:
            self._access_count += 1

            entry = self._cache.get(key)
            if entry is not None:
                if datetime.now() < entry['expires_at']:
                    self._hit_count += 1
                    return entry['value']
                # Expired, remove it
                del self._cache[key]

        return None

    def set(self, key: str, value: Any, ttl_seconds: int = 3600):
        """Set value in cache with TTL"""
        with self._lock:
            self._cache[key] = {
                'value': value,
                'expires_at': datetime.now() + timedelta(seconds=ttl_seconds),
                'created_at': datetime.now()
            }

    def delete(self, key: str):
        with self._lock:
            self._cache.pop(key, None)

    def clear(self):
        with self._lock:
            self._cache.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        with self._lock:
            return {
                'total_entries': len(self._cache),
                'access_count': self._access_count,
                'hit_count': self._hit_count,
                'hit_rate': self._hit_count / self._access_count if self._access_count > 0 else 0
            }


# Signing keys fetched from the identity provider
jwks_cache = InMemoryCache()
