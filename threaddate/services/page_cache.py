"""In-process cache for rendered read payloads, keyed by public path."""

from __future__ import annotations

import os
import threading
import time
from typing import Any

from loguru import logger

_lock = threading.Lock()
# {path: (value, expiry_timestamp)}
_entries: dict[str, tuple[Any, float]] = {}
_max_entries = 1000


def _ttl() -> int:
    return int(os.getenv("PAGE_CACHE_TTL_SECONDS", "300"))


def get(path: str) -> Any | None:
    with _lock:
        hit = _entries.get(path)
        if hit is None:
            return None
        value, expiry = hit
        if time.time() > expiry:
            del _entries[path]
            return None
        return value


def put(path: str, value: Any) -> None:
    ttl = _ttl()
    if ttl <= 0:
        return
    with _lock:
        if len(_entries) >= _max_entries:
            # drop the oldest 10%
            for k in list(_entries.keys())[: _max_entries // 10]:
                del _entries[k]
        _entries[path] = (value, time.time() + ttl)


def revalidate_path(*paths: str) -> None:
    with _lock:
        for path in paths:
            _entries.pop(path, None)
    logger.bind(paths=list(paths)).debug("cache_revalidated")


def clear() -> None:
    with _lock:
        _entries.clear()
