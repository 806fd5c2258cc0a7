import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional


class TTLCache:
    """Process-local cache for small, slow-changing read models (feed filter options)."""

    def __init__(self) -> None:
        # key -> (value, expires_at)
        self._store: Dict[str, tuple[Any, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        now = time.time()
        async with self._lock:
            item = self._store.get(key)
            if not item:
                return None
            value, exp = item
            if exp and exp < now:
                self._store.pop(key, None)
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        exp = time.time() + max(0, int(ttl_seconds))
        async with self._lock:
            self._store[key] = (value, exp)

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: int,
    ) -> Any:
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        if ttl_seconds > 0:
            await self.set(key, value, ttl_seconds)
        return value

    async def delete_prefix(self, prefix: str) -> int:
        async with self._lock:
            keys = [k for k in self._store if k.startswith(prefix)]
            for k in keys:
                self._store.pop(k, None)
            return len(keys)


cache = TTLCache()
