import functools
import hashlib
import logging
import time
from typing import Literal, Optional, Any

from django.core.cache import caches
from django.core.cache.backends.base import BaseCache

from introspection_auth.settings import api_settings
from introspection_auth.utils.introspection_result import IntrospectionResult

logger = logging.getLogger(__name__)

TokenType = Literal["Bearer"]

_CACHE_MISS = object()


def hash_token(token: str) -> str:
    return hashlib.sha512(token.encode("utf-8")).hexdigest()


def get_cache_key(token_type: TokenType, token_id: str, prefix: Optional[str] = None) -> str:
    """
    Get the cache key for a token.
    This will group by the type and store against the token's ID.

    For Bearer tokens the ID is normally the digest of the token (see `hash_token`), as the token is
    confidential and would otherwise be readable by anyone with access to the cache provider.
    """
    if prefix is None:
        prefix = api_settings.CACHE_PREFIX
    return f"{prefix}.{token_type}/{token_id}"


class ValidationCache:
    """
    Keeps active introspection results in a Django cache until the token expires.

    Expiry is checked when an entry is read: an entry whose `expires_at` has passed is deleted
    and reported as a miss, so an expired verdict is never served.
    """

    def __init__(self, backend: BaseCache, prefix: str = 'introspection_auth', hash_keys: bool = True):
        self.backend = backend
        self.prefix = prefix
        self.hash_keys = hash_keys

    @classmethod
    def from_settings(cls) -> 'ValidationCache':
        return cls(
            caches[api_settings.CACHE_NAME],
            prefix=api_settings.CACHE_PREFIX,
            hash_keys=api_settings.HASH_CACHE_KEYS,
        )

    def key_for(self, token: str) -> str:
        token_id = hash_token(token) if self.hash_keys else token
        return get_cache_key("Bearer", token_id, prefix=self.prefix)

    def lookup(self, token: str) -> Optional[IntrospectionResult]:
        """
        Return the cached result for `token`, or None on a miss.
        A cache backend that cannot be read is treated as a miss.
        """
        try:
            cached = self.backend.get(self.key_for(token), _CACHE_MISS)
        except Exception as e:
            logger.warning(f"Could not read introspection result from cache: {e!r}")
            return None

        if cached is _CACHE_MISS:
            logger.debug("Introspection cache miss")
            return None

        if not isinstance(cached, IntrospectionResult):
            logger.warning(f"Discarding unexpected introspection cache entry of type {type(cached).__name__}")
            self.invalidate(token)
            return None

        if cached.is_expired(int(time.time())):
            logger.debug(f"Cached introspection result expired at {cached.expires_at}")
            self.invalidate(token)
            return None

        logger.debug("Introspection cache hit")
        return cached

    def store(self, token: str, result: IntrospectionResult) -> bool:
        """
        Store an active result, replacing any previous entry.

        Returns False when the cache backend failed to write. Caching is an optimisation only,
        so the failure is logged and left to the caller to ignore.
        """
        if not result.active:
            raise ValueError("Only active introspection results may be cached")

        timeout = None
        if result.expires_at is not None:
            timeout = max(result.expires_at - int(time.time()), 1)

        try:
            self.backend.set(self.key_for(token), result, timeout=timeout)
        except Exception as e:
            logger.warning(f"Could not write introspection result to cache: {e!r}")
            return False
        return True

    def invalidate(self, token: str) -> bool:
        """
        Delete the entry for `token`. Returns False when the cache backend failed to delete it.
        """
        try:
            self.backend.delete(self.key_for(token))
        except Exception as e:
            logger.warning(f"Could not delete introspection result from cache: {e!r}")
            return False
        return True

    def has_key(self, token: str) -> bool:
        return self.backend.has_key(self.key_for(token))


# noinspection PyPep8Naming
class cache(object):
    """ Cache decorator that memoizes the return value of a method for some time.

    Increment the cache_version everytime your method's implementation changes
    in such a way that it returns values that are not backwards compatible.
    For more information, see the Django cache documentation:
    https://docs.djangoproject.com/en/stable/topics/cache/#cache-versioning
    """

    def __init__(self, ttl, cache_version=1, has_secret_args=False):
        self.ttl = ttl
        self.cache_version = cache_version
        self.has_secret_args = has_secret_args

    @staticmethod
    def hash_arg(t_arg: Any) -> str:
        if isinstance(t_arg, str):
            return hash_token(t_arg)
        elif isinstance(t_arg, bytes):
            return hashlib.sha512(t_arg).hexdigest()
        else:
            return hex(hash(t_arg))

    def __call__(self, fn):
        @functools.wraps(fn)
        def wrapped(this, *args):
            t_cache = caches[api_settings.CACHE_NAME]

            if self.has_secret_args:
                # Hash the arguments to prevent sensitive information being present in the cache keys.
                key_args = [cache.hash_arg(a) for a in args]
            else:
                key_args = args

            key = api_settings.CACHE_PREFIX + '.' + '.'.join([fn.__name__] + list(map(str, key_args)))

            cached_value = t_cache.get(key, _CACHE_MISS, version=self.cache_version)
            if cached_value is _CACHE_MISS:
                cached_value = fn(this, *args)
                t_cache.set(key, cached_value, timeout=self.ttl, version=self.cache_version)
            return cached_value

        return wrapped
