from typing import Optional


def parse_scopes(scope: Optional[str]) -> list[str]:
    """
    Split an OAuth2 `scope` string into its scope tokens.
    Order and duplicates are kept as sent by the server.
    """
    if not scope or not scope.strip():
        return []
    return scope.strip().split()
