import json
from django.contrib.auth import get_user_model
from django.contrib.auth.models import User
from django.core.cache import caches
from requests.models import Response

from unittest.mock import patch, MagicMock, AsyncMock

from introspection_auth.settings import api_settings

INTROSPECTION_URL = "http://example.com/introspect"


class FakeRequests:
    """
    A fake requests object that can be used to mock `requests.get` and `requests.post` in tests.
    Every call is recorded in `calls` as `(method, url, kwargs)`.

    :usage: ```python
    responder = FakeRequests()
    responder.set_response("http://example.com/...",
                           {"abc": "xyz"})

    self.mock_post = [PATCH PATH TO requests.post]
    self.mock_post.side_effect = self.responder.post
    ```
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def set_response(self, url, content, status_code=200):
        self.responses[url] = (status_code, json.dumps(content))

    def set_raw_response(self, url, content: str, status_code=200):
        self.responses[url] = (status_code, content)

    def _respond(self, url):
        wanted_response = self.responses.get(url)
        if not wanted_response:
            status_code, content = 404, ''
        else:
            status_code, content = wanted_response

        response = Response()
        response._content = content.encode('utf-8')
        response.status_code = status_code
        response.url = url

        return response

    def get(self, url, *args, **kwargs):
        self.calls.append(('GET', url, kwargs))
        return self._respond(url)

    def post(self, url, *args, **kwargs):
        self.calls.append(('POST', url, kwargs))
        return self._respond(url)

    def calls_to(self, url):
        return [call for call in self.calls if call[1] == url]


class AuthenticationTestCaseMixin:
    username = 'demouser'
    user: User
    responder: FakeRequests
    mock_get: MagicMock | AsyncMock
    mock_post: MagicMock | AsyncMock

    @staticmethod
    def patch(thing_to_mock, **kwargs) -> MagicMock | AsyncMock:
        """
        Wrap the unittest patch decorator to make it easier to use in tests.
        """
        patcher = patch(thing_to_mock, **kwargs)
        patched = patcher.start()
        return patched

    def set_up(self):
        """
        Set up the test case with a user and a responder that answers the introspection
        endpoint with an active token belonging to that user.
        """
        caches[api_settings.CACHE_NAME].clear()
        self.user, _ = get_user_model().objects.get_or_create(username=self.username)
        self.responder = FakeRequests()
        self.responder.set_response("http://example.com/.well-known/openid-configuration",
                                    {"issuer": "http://example.com",
                                     "introspection_endpoint": INTROSPECTION_URL})
        self.responder.set_response(INTROSPECTION_URL, {"active": True, "username": self.username})
        self.mock_get = AuthenticationTestCaseMixin.patch('requests.get')
        self.mock_get.side_effect = self.responder.get
        self.mock_post = AuthenticationTestCaseMixin.patch('requests.post')
        self.mock_post.side_effect = self.responder.post

    def tear_down(self):
        patch.stopall()
