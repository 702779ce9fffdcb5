import logging

from django.utils.translation import gettext as _
from rest_framework.exceptions import AuthenticationFailed

from introspection_auth.authentication.base import BaseIntrospectionAuthentication, Principal
from introspection_auth.config import IntrospectionServerConfig
from introspection_auth.exceptions import AuthenticationError, IntrospectionUnavailable
from introspection_auth.provider import IntrospectionAuthProvider
from introspection_auth.settings import api_settings
from introspection_auth.validator import TokenValidator

logger = logging.getLogger(__name__)


class BearerTokenAuthentication(BaseIntrospectionAuthentication):
    """
    Bearer token authentication using an OAuth 2.0 token introspection endpoint.

    A token that the endpoint reports as inactive fails with 401. When the endpoint cannot be
    reached or its answer cannot be understood the request fails with 503 instead, as the token
    was never actually rejected.
    """
    www_authenticate_realm = 'api'

    def authenticate_header(self, request):
        return 'Bearer realm="{0}"'.format(self.www_authenticate_realm)

    def get_validator(self) -> TokenValidator:
        return TokenValidator(IntrospectionServerConfig.from_settings(url=self.introspection_endpoint))

    def authenticate(self, request):
        bearer_token = self.get_token(request, api_settings.BEARER_AUTH_HEADER_PREFIX)

        # Return None here instead of raising an error so that other Authentication classes can be tried.
        if bearer_token is None:
            return None

        try:
            credential = bearer_token.decode('ascii')
        except UnicodeDecodeError:
            raise AuthenticationFailed(_('Invalid Authorization header. Token contains invalid characters.'))

        principals = []

        def set_principal(subject, scopes):
            principals.append(Principal(subject=subject, scopes=tuple(scopes)))

        provider = IntrospectionAuthProvider(self.get_validator(), set_principal)
        try:
            authenticated = provider.authenticate(credential)
        except AuthenticationError as e:
            logger.warning(f"Bearer token could not be validated: {e}")
            raise IntrospectionUnavailable()

        if not authenticated:
            raise AuthenticationFailed(_('Token is not active'))

        principal = principals[-1]
        user = api_settings.RESOLVE_USER_FUNCTION(request, principal)
        if user is None:
            raise AuthenticationFailed(_('Invalid Authorization header. User not found.'))

        return user, principal
