import threading
from typing import Any, Dict, Optional


class PageCache:
    """
    In-process cache of rendered view payloads, keyed by request path
    (including any query string). invalidate(path) drops the path itself and
    every key underneath it, so "/dashboard/invoices" also clears
    "/dashboard/invoices?page=2" and "/dashboard/invoices/<id>/edit".

    Every invalidate bumps `generation`. A reader takes the generation before
    building a payload and passes it to set(); if an invalidation happened in
    between, the payload is stale and is not stored.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Any] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, payload: Any, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._entries[key] = payload
            return True

    def invalidate(self, path: str) -> int:
        prefix = path.rstrip("/")
        with self._lock:
            self._generation += 1
            stale = [
                k
                for k in self._entries
                if k == prefix or k.startswith(prefix + "?") or k.startswith(prefix + "/")
            ]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries


page_cache = PageCache()


def get_page_cache() -> PageCache:
    return page_cache
