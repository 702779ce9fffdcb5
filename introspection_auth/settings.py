from django.conf import settings
from rest_framework.settings import APISettings

USER_SETTINGS = getattr(settings, 'INTROSPECTION_AUTH', None)

DEFAULTS = {
    ## OAuth2 Token Introspection
    ## https://datatracker.ietf.org/doc/html/rfc7662

    # The endpoint to use for token introspection.
    # When unset, it is looked up in the discovery document of OIDC_ENDPOINT.
    'INTROSPECTION_ENDPOINT': None,

    # The Client ID and Client Secret this application presents to the
    # introspection endpoint (HTTP Basic). Both must be set to be sent.
    'CLIENT_ID': None,
    'CLIENT_SECRET': None,

    # Sent as `token_type_hint` with every introspection request, e.g. 'access_token'
    'TOKEN_TYPE_HINT': None,

    # Lifetime given to an active token when the introspection response has no `exp`
    'DEFAULT_TOKEN_EXPIRY_TIME': 60 * 60,

    # Passed through to `requests.post`
    'REQUEST_TIMEOUT': 10,
    'VERIFY_SSL': True,

    ## OIDC Provider configuration

    # The Issuer URL of the OpenID Provider, only used for discovery
    'OIDC_ENDPOINT': None,

    # The time for which to keep the current OIDC configuration in cache
    'OIDC_CONFIG_CACHE_EXPIRATION_TIME': 24 * 60 * 60,

    # Function to resolve the user from the request and the token's principal
    'RESOLVE_USER_FUNCTION': 'introspection_auth.authentication.get_user_by_username',

    # The prefix for the Bearer Authorization header
    'BEARER_AUTH_HEADER_PREFIX': 'Bearer',

    ## Caching

    # Keep active introspection results until the token expires
    'TOKEN_CACHE_ENABLED': True,
    # The Django cache to use
    # This should be the name of a cache defined in the CACHES setting (defaults to 'default')
    # If you have a Redis cache, then you could use that.
    'CACHE_NAME': 'default',
    # The prefix to use for cache keys (excluding trailing '.')
    'CACHE_PREFIX': 'introspection_auth',
    # Store tokens under their SHA-512 digest instead of their raw value
    'HASH_CACHE_KEYS': True,
}

# List of settings that may be in string import notation.
IMPORT_STRINGS = (
    'RESOLVE_USER_FUNCTION',
)

api_settings = APISettings(USER_SETTINGS, DEFAULTS, IMPORT_STRINGS)
