import base64
import time
from unittest.mock import patch

import requests
from django.core.exceptions import ImproperlyConfigured
from django.test import RequestFactory, TestCase

from introspection_auth.authentication import BearerTokenAuthentication, Principal
from introspection_auth.settings import api_settings
from introspection_auth.test import AuthenticationTestCaseMixin, INTROSPECTION_URL

WELL_KNOWN_URL = 'http://example.com/.well-known/openid-configuration'


class TestBearerAuthentication(AuthenticationTestCaseMixin, TestCase):
    urls = __name__

    def setUp(self):
        self.set_up()

    def tearDown(self):
        self.tear_down()

    def test_using_valid_bearer_token(self):
        self.responder.set_response(
            INTROSPECTION_URL, {'username': self.user.username, 'active': True, 'exp': 9999999999})
        auth = 'Bearer abcdefg'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.content.decode(), 'a')
        self.assertEqual(resp.status_code, 200)

    def test_scopes_are_exposed_on_request_auth(self):
        self.responder.set_response(
            INTROSPECTION_URL, {'username': self.user.username, 'active': True, 'scope': 'read write'})
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content.decode(), 'read write')

    def test_introspection_request(self):
        self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        [(_, _, kwargs)] = self.responder.calls_to(INTROSPECTION_URL)
        credentials = base64.b64encode(b'test-client-id:test-client-secret').decode('ascii')
        self.assertEqual(kwargs['data'], {'token': 'abcdefg'})
        self.assertEqual(kwargs['headers']['Authorization'], f'Basic {credentials}')
        self.assertEqual(kwargs['headers']['Content-Type'], 'application/x-www-form-urlencoded')

    @patch.object(api_settings, 'TOKEN_TYPE_HINT', 'access_token')
    def test_token_type_hint_setting(self):
        self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        [(_, _, kwargs)] = self.responder.calls_to(INTROSPECTION_URL)
        self.assertEqual(kwargs['data'], {'token': 'abcdefg', 'token_type_hint': 'access_token'})

    def test_cache_of_valid_bearer_token(self):
        token_expiry = int(time.time()) + 30
        self.responder.set_response(
            INTROSPECTION_URL, {'username': self.user.username, 'active': True, 'exp': token_expiry})
        auth = 'Bearer egergerg'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 200)

        # Token is revoked, but validity is cached
        self.responder.set_response(INTROSPECTION_URL, {'active': False})
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(self.responder.calls_to(INTROSPECTION_URL)), 1)

        # Once the token's `exp` has passed the cached result is discarded and the endpoint is asked again.
        with patch('introspection_auth.utils.caching.time.time', return_value=token_expiry + 1):
            resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(len(self.responder.calls_to(INTROSPECTION_URL)), 2)

    @patch.object(api_settings, 'TOKEN_CACHE_ENABLED', False)
    def test_cache_can_be_disabled(self):
        auth = 'Bearer egergerg'
        self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(len(self.responder.calls_to(INTROSPECTION_URL)), 2)

    def test_using_inactive_bearer_token(self):
        self.responder.set_response(INTROSPECTION_URL, {'active': False})
        auth = 'Bearer hjikasdf'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp['WWW-Authenticate'], 'Bearer realm="api"')

    def test_cache_of_inactive_bearer_token(self):
        self.responder.set_response(INTROSPECTION_URL, {'active': False})
        auth = 'Bearer feegrgeregreg'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 401)

        # Token becomes valid
        self.responder.set_response(
            INTROSPECTION_URL, {'username': self.user.username, 'active': True}, 200)

        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 200)

    def test_introspection_endpoint_error(self):
        self.responder.set_response(INTROSPECTION_URL, "", 500)
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer hjikasdf')
        self.assertEqual(resp.status_code, 503)

    def test_inaccessible_introspection_endpoint(self):
        self.mock_post.side_effect = requests.ConnectionError
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer hjikasdf')
        self.assertEqual(resp.status_code, 503)

    def test_malformed_introspection_response(self):
        self.responder.set_raw_response(INTROSPECTION_URL, '<html>oops</html>')
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer hjikasdf')
        self.assertEqual(resp.status_code, 503)

    def test_unknown_user(self):
        self.responder.set_response(INTROSPECTION_URL, {'username': 'somebody-else', 'active': True})
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 401)

    def test_using_malformed_bearer_token(self):
        auth = 'Bearer abc def'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(self.responder.calls_to(INTROSPECTION_URL), [])

    def test_using_missing_bearer_token(self):
        auth = 'Bearer'
        resp = self.client.get('/test/', HTTP_AUTHORIZATION=auth)
        self.assertEqual(resp.status_code, 401)

    def test_without_authorization_header(self):
        resp = self.client.get('/test/')
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(self.responder.calls, [])

    def test_other_scheme_is_ignored(self):
        authentication = BearerTokenAuthentication()
        request = RequestFactory().get('/test/', HTTP_AUTHORIZATION='Basic dXNlcjpwYXNz')
        self.assertIsNone(authentication.authenticate(request))

    def test_authenticate_returns_principal(self):
        self.responder.set_response(
            INTROSPECTION_URL, {'username': self.user.username, 'active': True, 'scope': 'read'})
        request = RequestFactory().get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        user, principal = BearerTokenAuthentication().authenticate(request)
        self.assertEqual(user, self.user)
        self.assertEqual(principal, Principal(subject=self.user.username, scopes=('read',)))


class TestIntrospectionEndpointResolution(AuthenticationTestCaseMixin, TestCase):
    def setUp(self):
        self.set_up()

    def tearDown(self):
        self.tear_down()

    def test_endpoint_is_discovered(self):
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([call[1] for call in self.responder.calls], [WELL_KNOWN_URL, INTROSPECTION_URL])

    def test_discovery_document_is_cached(self):
        self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.client.get('/test/', HTTP_AUTHORIZATION='Bearer hijklmn')
        self.assertEqual(len(self.responder.calls_to(WELL_KNOWN_URL)), 1)

    @patch.object(api_settings, 'INTROSPECTION_ENDPOINT', 'http://auth.example.com/introspect')
    def test_configured_endpoint_skips_discovery(self):
        self.responder.set_response('http://auth.example.com/introspect', {'active': True, 'username': self.username})
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.responder.calls_to(WELL_KNOWN_URL), [])

    @patch.object(api_settings, 'OIDC_ENDPOINT', None)
    def test_missing_endpoint(self):
        request = RequestFactory().get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        with self.assertRaises(ImproperlyConfigured):
            BearerTokenAuthentication().authenticate(request)
        self.assertEqual(self.responder.calls, [])

    def test_discovery_document_without_introspection_endpoint(self):
        self.responder.set_response(WELL_KNOWN_URL, {'issuer': 'http://example.com'})
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(self.responder.calls_to(INTROSPECTION_URL), [])

    def test_inaccessible_discovery_endpoint(self):
        self.mock_get.side_effect = requests.ConnectionError
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(self.responder.calls_to(INTROSPECTION_URL), [])

    def test_discovery_error_status(self):
        self.responder.set_response(WELL_KNOWN_URL, "", 500)
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 503)

    def test_failed_discovery_is_not_cached(self):
        self.mock_get.side_effect = requests.ConnectionError
        self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.mock_get.side_effect = self.responder.get
        resp = self.client.get('/test/', HTTP_AUTHORIZATION='Bearer abcdefg')
        self.assertEqual(resp.status_code, 200)
