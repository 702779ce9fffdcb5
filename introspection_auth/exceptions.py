from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException


class IntrospectionError(Exception):
    """
    Base class for failures of the validation machinery itself.

    An inactive token is not an error; these are raised only when the validity
    of a token could not be determined.
    """


class IntrospectionCallError(IntrospectionError):
    """
    The introspection endpoint could not be reached or answered with an error status.
    """

    def __init__(self, message: str, cause: BaseException):
        super().__init__(message)
        self.cause = cause


class ResponseParseError(IntrospectionError):
    """
    The introspection response was not a JSON object with a boolean `active` member.
    """


class AuthenticationError(IntrospectionError):
    """
    Raised by an auth provider when it could not decide whether a credential is valid.
    """


class IntrospectionUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _('Unable to verify the bearer token at this time.')
    default_code = 'introspection_unavailable'
