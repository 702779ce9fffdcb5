import logging
from typing import Optional

from introspection_auth.config import IntrospectionServerConfig
from introspection_auth.introspection import IntrospectionClient
from introspection_auth.utils.introspection_result import IntrospectionResult

logger = logging.getLogger(__name__)


class TokenValidator:
    """
    Validates bearer tokens, answering from the cache when possible and from the
    introspection endpoint otherwise.
    """

    def __init__(self, config: IntrospectionServerConfig, client: Optional[IntrospectionClient] = None):
        self.config = config
        self.client = client or IntrospectionClient(config)

    def validate(self, token: str) -> Optional[IntrospectionResult]:
        """
        Validate `token`.

        Returns None for an empty token, otherwise the introspection result, which may be inactive.
        Raises an `IntrospectionError` when the endpoint could not be asked or understood.
        """
        if token == "":
            return None

        cache = self.config.cache
        if cache is not None:
            cached = cache.lookup(token)
            if cached is not None:
                return cached

        result = self.client.introspect(token)

        if result.active and cache is not None:
            if not cache.store(token, result):
                logger.info("Continuing without caching the introspection result")

        return result
