import logging

from rest_framework.request import Request

from .base import BaseIntrospectionAuthentication, Principal
from .bearer import BearerTokenAuthentication

# Leave in place as the tests need to mock this
# noinspection PyUnresolvedReferences
import requests

logger = logging.getLogger(__name__)


def get_user_by_username(_request: Request, principal: Principal):
    """
    Default function to resolve the user from the token's principal.
    It simply matches the introspected username to the user's natural key.

    Returns None if the user does not exist to avoid information leakage.
    Your implementation may want to handle this differently.
    """
    from django.contrib.auth import get_user_model

    subject = principal.subject

    if not subject:
        logger.warning("Introspection response did not include a username")
        return None

    User = get_user_model()
    try:
        return User.objects.get_by_natural_key(subject)
    except User.DoesNotExist:
        logger.warning(f"User {subject} not found")
        return None
