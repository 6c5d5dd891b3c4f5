"""Cache keys for public schedule responses.

List pages and slug details share one version number. Bumping it makes
every previously cached entry unreachable.
"""

from django.conf import settings
from django.core.cache import cache

VERSION_KEY = "schedules:version"


def current_version() -> int:
    version = cache.get(VERSION_KEY)
    if version is None:
        cache.add(VERSION_KEY, 1, timeout=None)
        version = cache.get(VERSION_KEY, 1)
    return version


def bump_version() -> None:
    try:
        cache.incr(VERSION_KEY)
    except ValueError:
        cache.set(VERSION_KEY, 2, timeout=None)


def list_key(page: int, limit: int) -> str:
    return f"schedules:v{current_version()}:list:{page}:{limit}"


def detail_key(slug: str) -> str:
    return f"schedules:v{current_version()}:detail:{slug}"


def get_cached(key: str):
    return cache.get(key)


def set_cached(key: str, value) -> None:
    cache.set(key, value, timeout=settings.SCHEDULE_CACHE_TIMEOUT)
