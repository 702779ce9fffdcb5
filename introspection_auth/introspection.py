"""
Client for OAuth 2.0 Token Introspection endpoints (RFC 7662).
https://datatracker.ietf.org/doc/html/rfc7662
"""
import logging
import time

import requests

from introspection_auth.config import IntrospectionServerConfig
from introspection_auth.exceptions import IntrospectionCallError, ResponseParseError
from introspection_auth.utils.introspection_result import IntrospectionResponse, IntrospectionResult

logger = logging.getLogger(__name__)


class IntrospectionClient:
    """
    Asks the introspection endpoint about a token and turns the answer into an `IntrospectionResult`.
    Results are not cached here, see `TokenValidator`.
    """

    def __init__(self, config: IntrospectionServerConfig):
        self.config = config

    def build_request(self, token: str) -> tuple[dict, dict]:
        """
        Return the form fields and headers of the introspection request for `token`.
        """
        data = {'token': token}
        if self.config.token_type_hint:
            data['token_type_hint'] = self.config.token_type_hint

        headers = {'Content-Type': 'application/x-www-form-urlencoded'}
        authorization = self.config.client_config.authorization_header
        if authorization:
            headers['Authorization'] = authorization

        return data, headers

    def introspect(self, token: str) -> IntrospectionResult:
        data, headers = self.build_request(token)
        client_config = self.config.client_config

        try:
            response = requests.post(
                self.config.url,
                data=data,
                headers=headers,
                timeout=client_config.timeout,
                verify=client_config.verify,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Token introspection request to {self.config.url} failed: {e!r}")
            raise IntrospectionCallError(f"Token introspection request failed: {e}", e) from e

        try:
            body: IntrospectionResponse = response.json()
        except ValueError as e:
            raise ResponseParseError("Introspection response is not valid JSON") from e

        return self.parse_response(body)

    def parse_response(self, body: IntrospectionResponse) -> IntrospectionResult:
        if not isinstance(body, dict):
            raise ResponseParseError("Introspection response is not a JSON object")

        active = body.get('active')
        # bool is checked by type so that 0/1 or "true" are rejected
        if not isinstance(active, bool):
            raise ResponseParseError("Introspection response has no boolean 'active' member")

        if not active:
            return IntrospectionResult.inactive()

        username = body.get('username')
        if not isinstance(username, str):
            username = None

        scope = body.get('scope')
        if not isinstance(scope, str):
            scope = None

        exp = body.get('exp')
        if isinstance(exp, int) and not isinstance(exp, bool):
            expires_at = exp
        else:
            expires_at = int(time.time()) + self.config.default_token_expiry_seconds

        return IntrospectionResult(active=True, username=username, scope=scope, expires_at=expires_at)
