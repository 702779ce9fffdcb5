import base64
from dataclasses import dataclass, field
from typing import Optional

from django.core.exceptions import ImproperlyConfigured

from introspection_auth.settings import api_settings
from introspection_auth.utils.caching import ValidationCache


@dataclass(frozen=True)
class HttpClientConfig:
    """
    Options handed to `requests` for the introspection call.
    """
    timeout: float = 10
    verify: bool = True
    client_id: Optional[str] = None
    client_secret: Optional[str] = field(default=None, repr=False)

    @property
    def authorization_header(self) -> Optional[str]:
        if not self.client_id or not self.client_secret:
            return None
        credentials = base64.b64encode(f'{self.client_id}:{self.client_secret}'.encode('utf-8')).decode('ascii')
        return f'Basic {credentials}'


@dataclass(frozen=True)
class IntrospectionServerConfig:
    """
    Everything needed to validate tokens against one introspection endpoint.

    Leaving `cache` unset disables result caching.
    """
    url: str
    token_type_hint: Optional[str] = None
    cache: Optional[ValidationCache] = None
    default_token_expiry_seconds: int = 3600
    client_config: HttpClientConfig = field(default_factory=HttpClientConfig)

    def __post_init__(self):
        if not self.url:
            raise ImproperlyConfigured('An introspection endpoint URL is required.')

    @classmethod
    def from_settings(cls, url: Optional[str] = None) -> 'IntrospectionServerConfig':
        """
        Build the configuration from the INTROSPECTION_AUTH Django setting.

        :param url: Overrides INTROSPECTION_ENDPOINT, e.g. with a discovered endpoint.
        """
        return cls(
            url=url or api_settings.INTROSPECTION_ENDPOINT,
            token_type_hint=api_settings.TOKEN_TYPE_HINT,
            cache=ValidationCache.from_settings() if api_settings.TOKEN_CACHE_ENABLED else None,
            default_token_expiry_seconds=api_settings.DEFAULT_TOKEN_EXPIRY_TIME,
            client_config=HttpClientConfig(
                timeout=api_settings.REQUEST_TIMEOUT,
                verify=api_settings.VERIFY_SSL,
                client_id=api_settings.CLIENT_ID,
                client_secret=api_settings.CLIENT_SECRET,
            ),
        )
