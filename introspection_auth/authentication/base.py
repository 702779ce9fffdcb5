import logging
from dataclasses import dataclass
from typing import Optional

import requests
from authlib.oidc.discovery import get_well_known_url
from django.core.exceptions import ImproperlyConfigured
from django.utils.encoding import smart_str
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed
from django.utils.translation import gettext as _

from introspection_auth.exceptions import IntrospectionUnavailable
from introspection_auth.settings import api_settings
from introspection_auth.utils import cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    The identity established for a request, available as `request.auth`.
    """
    subject: Optional[str]
    scopes: tuple[str, ...] = ()


class BaseIntrospectionAuthentication(BaseAuthentication):
    """
    A base class to provide common methods for introspection authentication classes.
    """

    @property
    @cache(ttl=api_settings.OIDC_CONFIG_CACHE_EXPIRATION_TIME)
    def oidc_config(self):
        """
        Fetch the OpenID Connect discovery metadata from the well-known endpoint.
        The well-known endpoint is derived from the OIDC_ENDPOINT setting.
        """
        try:
            response = requests.get(
                get_well_known_url(
                    api_settings.OIDC_ENDPOINT,
                    external=True
                ),
                timeout=api_settings.REQUEST_TIMEOUT,
                verify=api_settings.VERIFY_SSL
            )
            response.raise_for_status()
            config = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching OIDC configuration: {str(e)}")
            raise IntrospectionUnavailable(_("Error fetching OIDC configuration"))

        return config

    @property
    def introspection_endpoint(self) -> str:
        """
        The INTROSPECTION_ENDPOINT setting, or the endpoint advertised by the OpenID Provider.
        """
        if api_settings.INTROSPECTION_ENDPOINT:
            return api_settings.INTROSPECTION_ENDPOINT

        if not api_settings.OIDC_ENDPOINT:
            raise ImproperlyConfigured('Set INTROSPECTION_AUTH["INTROSPECTION_ENDPOINT"] or INTROSPECTION_AUTH["OIDC_ENDPOINT"] '
                                       'to locate the token introspection endpoint.')

        endpoint = self.oidc_config.get('introspection_endpoint')
        if not endpoint:
            logger.error("OIDC discovery metadata does not advertise an introspection_endpoint")
            raise IntrospectionUnavailable(_('Invalid introspection_endpoint URL. Did not find a URL from OpenID connect '
                                             'discovery metadata nor settings.INTROSPECTION_AUTH.INTROSPECTION_ENDPOINT.'))
        return endpoint

    @staticmethod
    def get_token(request, prefix: str = api_settings.BEARER_AUTH_HEADER_PREFIX) -> Optional[bytes]:
        """
        Get the token from the request authorisation header.
        """
        auth = get_authorization_header(request).split()
        auth_header_prefix = prefix.lower()

        if not auth or smart_str(auth[0].lower()) != auth_header_prefix:
            return None

        if len(auth) == 1:
            msg = _('Invalid Authorization header. No credentials provided')
            raise AuthenticationFailed(msg)
        elif len(auth) > 2:
            msg = _(
                'Invalid Authorization header. Credentials string should not contain spaces.')
            raise AuthenticationFailed(msg)
        return auth[1]
