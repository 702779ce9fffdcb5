from .caching import ValidationCache, cache, get_cache_key, hash_token
from .introspection_result import IntrospectionResponse, IntrospectionResult
from .scopes import parse_scopes
