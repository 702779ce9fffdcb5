from dataclasses import dataclass
from typing import Literal, Optional, TypedDict


class IntrospectionResponse(TypedDict, total=False):
    """
    The JSON members of an RFC 7662 introspection response.
    Only `active`, `username`, `scope` and `exp` are read.
    """
    active: bool
    """
    (required) Whether the token is active or not.
    """
    scope: str
    """
    (optional) The scopes of the token.

    This is a space separated string.
    """
    client_id: str
    """
    (optional) The client ID of the application from whence the token came.
    """
    username: str
    """
    (optional) The username of the user who owns the token.
    """
    token_type: Literal["bearer", "Bearer", "mac", "MAC"]
    exp: int
    """
    (optional) The expiration time of the token as a unix timestamp (seconds).
    """
    iat: int
    nbf: int
    sub: str
    aud: str | list[str]
    iss: str
    jti: str


@dataclass(frozen=True)
class IntrospectionResult:
    """
    The outcome of introspecting a single token.

    `username`, `scope` and `expires_at` are only ever set on active results.
    """
    active: bool
    username: Optional[str] = None
    scope: Optional[str] = None
    expires_at: Optional[int] = None

    @classmethod
    def inactive(cls) -> 'IntrospectionResult':
        return cls(active=False)

    def is_expired(self, now: int) -> bool:
        if self.expires_at is None:
            return False
        return now > self.expires_at
