import abc
import logging
from typing import Callable, Optional, Sequence

from introspection_auth.exceptions import AuthenticationError, IntrospectionError
from introspection_auth.utils.scopes import parse_scopes
from introspection_auth.validator import TokenValidator

logger = logging.getLogger(__name__)

SetPrincipal = Callable[[Optional[str], Sequence[str]], None]


class BaseAuthProvider(abc.ABC):
    """
    Decides whether an inbound credential is valid.

    `authenticate` returns False for a credential that was checked and rejected, and raises
    `AuthenticationError` when it could not be checked at all.
    """

    @abc.abstractmethod
    def authenticate(self, credential: str) -> bool:
        raise NotImplementedError


class IntrospectionAuthProvider(BaseAuthProvider):
    """
    Auth provider backed by a `TokenValidator`.
    On success the token's username and scopes are handed to `set_principal`.
    """

    def __init__(self, validator: TokenValidator, set_principal: SetPrincipal):
        self.validator = validator
        self.set_principal = set_principal

    def authenticate(self, credential: str) -> bool:
        if not credential:
            return False

        try:
            result = self.validator.validate(credential)
        except IntrospectionError as e:
            raise AuthenticationError(f"Could not validate bearer token: {e}") from e

        if result is None or not result.active:
            logger.debug("Bearer token is not active")
            return False

        self.set_principal(result.username, parse_scopes(result.scope))
        return True
