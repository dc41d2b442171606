"""
Performance utilities: lookup caching and timing
"""
import functools
import time
import logging
from typing import Any, Callable, Dict, Hashable, Optional


class PerformanceCache:
    """Simple bounded cache for repeated lookups"""

    def __init__(self, max_size: int = 128):
        self.cache: Dict[Hashable, Any] = {}
        self.max_size = max_size
        self.access_times: Dict[Hashable, float] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get cached value"""
        if key in self.cache:
            self.access_times[key] = time.monotonic()
            self.hits += 1
            return self.cache[key]
        self.misses += 1
        return None

    def set(self, key: Hashable, value: Any) -> None:
        """Set cached value"""
        if key not in self.cache and len(self.cache) >= self.max_size:
            self._evict_oldest()

        self.cache[key] = value
        self.access_times[key] = time.monotonic()

    def _evict_oldest(self) -> None:
        """Remove least recently used item"""
        if not self.access_times:
            return

        oldest_key = min(self.access_times.keys(), key=lambda k: self.access_times[k])
        del self.cache[oldest_key]
        del self.access_times[oldest_key]

    def clear(self) -> None:
        """Clear all cached items"""
        self.cache.clear()
        self.access_times.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        return {
            'size': len(self.cache),
            'max_size': self.max_size,
            'hits': self.hits,
            'misses': self.misses,
        }


def timed(func: Callable) -> Callable:
    """Decorator to measure function execution time"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        end_time = time.perf_counter()

        logger = logging.getLogger(func.__module__)
        logger.debug(f"{func.__name__} executed in {end_time - start_time:.4f} seconds")

        return result
    return wrapper
