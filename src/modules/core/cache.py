"""Catalog read-through cache with pattern invalidation.

``CatalogCache`` wraps catalog reads behind deterministic keys built from a
namespace plus the query parameters, and owns the invalidation performed by
catalog write paths.

Keys look like ``product_index_filters_<md5>_page_1_per_page_15``: scalar
parameters are inlined with ``%`` and ``_`` percent-encoded, nested
structures are replaced by the md5 digest of their canonical JSON encoding so
the key stays bounded and independent of dict ordering.

Invalidation is expressed as a glob pattern.  Each cache backend removes
matching entries with its own primitive (see ``PatternInvalidator``
implementations); backends without one invalidate nothing.  Cache errors are
logged and swallowed: a broken cache degrades to a miss, never to a
user-visible failure.
"""

from __future__ import annotations

import hashlib
import json
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, TypeVar

import structlog
from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache
from django.core.cache.backends.db import DatabaseCache
from django.core.cache.backends.locmem import LocMemCache
from django.core.serializers.json import DjangoJSONEncoder
from django.db import connections, router

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_MISSING = object()


# ---------------------------------------------------------------------------
# Pattern invalidators (one per backing store)
# ---------------------------------------------------------------------------


class PatternInvalidator(Protocol):
    """Removes every cache entry whose key matches a glob pattern."""

    def invalidate(self, pattern: str) -> None: ...


class NullInvalidator:
    """Used for stores that cannot enumerate keys (file, dummy, memcached)."""

    def __init__(self, cache: Optional[BaseCache] = None) -> None:
        self._cache = cache

    def invalidate(self, pattern: str) -> None:
        logger.debug("catalog_cache.invalidation_unsupported", pattern=pattern)


class RedisPatternInvalidator:
    """django-redis backend: native ``delete_pattern`` (SCAN + DEL)."""

    def __init__(self, cache: BaseCache) -> None:
        self._cache = cache

    def invalidate(self, pattern: str) -> None:
        self._cache.delete_pattern(pattern)  # type: ignore[attr-defined]


class LocMemPatternInvalidator:
    """Process-local backend: enumerate the store under its own lock.

    Uses ``LocMemCache`` private state (``_lock``, ``_cache``, ``_delete``)
    as of Django 5.x; ``test_catalog_cache`` asserts these still exist.
    """

    def __init__(self, cache: LocMemCache) -> None:
        self._cache = cache

    def invalidate(self, pattern: str) -> None:
        target = self._cache.make_key(pattern)
        with self._cache._lock:
            matching = [key for key in self._cache._cache if fnmatchcase(key, target)]
            for key in matching:
                self._cache._delete(key)


class DatabasePatternInvalidator:
    """Table-backed backend: ``DELETE ... WHERE cache_key LIKE``.

    Reads the private ``DatabaseCache._table`` (Django 5.x).
    """

    def __init__(self, cache: DatabaseCache) -> None:
        self._cache = cache

    def invalidate(self, pattern: str) -> None:
        like = _glob_to_like(self._cache.make_key(pattern))
        db = router.db_for_write(self._cache.cache_model_class)
        connection = connections[db]
        table = connection.ops.quote_name(self._cache._table)
        with connection.cursor() as cursor:
            cursor.execute(
                f"DELETE FROM {table} WHERE cache_key LIKE %s ESCAPE '\\'",
                [like],
            )


def _glob_to_like(pattern: str) -> str:
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%").replace("?", "_")


def invalidator_for(cache: BaseCache) -> PatternInvalidator:
    """Pick the invalidation strategy matching the cache backend."""
    if hasattr(cache, "delete_pattern"):
        return RedisPatternInvalidator(cache)
    if isinstance(cache, LocMemCache):
        return LocMemPatternInvalidator(cache)
    if isinstance(cache, DatabaseCache):
        return DatabasePatternInvalidator(cache)
    return NullInvalidator(cache)


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class CatalogCache:
    """Read-through cache gateway for catalog queries.

    ``alias`` selects the Django cache; it is resolved on every call so
    settings overrides (tests) are honoured.  ``timeout`` defaults to
    ``settings.CATALOG_CACHE_TIMEOUT``.
    """

    def __init__(
        self,
        alias: str = "default",
        timeout: Optional[int] = None,
        invalidator: Optional[PatternInvalidator] = None,
    ) -> None:
        self._alias = alias
        self._timeout = timeout
        self._invalidator = invalidator

    @property
    def cache(self) -> BaseCache:
        return caches[self._alias]

    @property
    def timeout(self) -> int:
        if self._timeout is not None:
            return self._timeout
        return getattr(settings, "CATALOG_CACHE_TIMEOUT", 3600)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def make_key(namespace: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Build the deterministic key for *namespace* and *params*."""
        key = namespace
        for name in sorted(params or {}):
            key += f"_{name}_{_encode_param(params[name])}"
        return key

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve(
        self,
        namespace: str,
        params: Optional[Mapping[str, Any]],
        producer: Callable[[], T],
    ) -> T:
        """Return the cached value for the key, computing it on a miss.

        Exceptions raised by *producer* propagate and nothing is cached.
        """
        key = self.make_key(namespace, params)

        try:
            value = self.cache.get(key, _MISSING)
        except Exception:
            logger.warning("catalog_cache.read_failed", key=key, exc_info=True)
            value = _MISSING

        if value is not _MISSING:
            logger.debug("catalog_cache.hit", key=key)
            return value

        logger.debug("catalog_cache.miss", key=key)
        value = producer()

        try:
            self.cache.set(key, value, self.timeout)
        except Exception:
            logger.warning("catalog_cache.write_failed", key=key, exc_info=True)
        return value

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, pattern: str) -> None:
        """Best-effort removal of every entry matching *pattern*."""
        try:
            invalidator = self._invalidator or invalidator_for(self.cache)
            invalidator.invalidate(pattern)
        except Exception:
            logger.warning(
                "catalog_cache.invalidation_failed", pattern=pattern, exc_info=True
            )
            return
        logger.debug("catalog_cache.invalidated", pattern=pattern)

    def invalidate_item(self, prefix: str, *identifiers: Any) -> None:
        """Drop every key of *prefix* mentioning one of *identifiers*."""
        for identifier in identifiers:
            if identifier in (None, ""):
                continue
            self.invalidate(f"{prefix}*{_escape(str(identifier))}*")

    def invalidate_listing(self, prefix: str) -> None:
        """Drop every listing/index key of *prefix* (admin and public)."""
        self.invalidate(f"{prefix}*index*")
        self.invalidate(f"{prefix}*list*")


def _encode_param(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (dict, list, tuple, set)):
        if isinstance(value, set):
            value = sorted(value, key=str)
        canonical = json.dumps(value, sort_keys=True, cls=DjangoJSONEncoder)
        return hashlib.md5(canonical.encode("utf-8")).hexdigest()
    return _escape(str(value))


def _escape(text: str) -> str:
    return text.replace("%", "%25").replace("_", "%5F")


catalog_cache = CatalogCache()


def catalog_params(**params: Any) -> Dict[str, Any]:
    """Drop empty values so equivalent queries share a key."""
    return {name: value for name, value in params.items() if value not in (None, "")}
