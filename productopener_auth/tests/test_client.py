"""Tests for :mod:`productopener_auth.client`."""

from unittest import TestCase, mock

import requests

from .. import client, domain
from ..exceptions import SSORequestFailed, ProfileParseError

PAYLOAD = {'user_id': 'alice', 'user_session': 'abc123'}


def _response(status_code=200, text=''):
    response = mock.MagicMock(status_code=status_code, text=text,
                              content=text.encode('utf-8'))
    response.ok = 200 <= status_code < 400
    return response


class TestEndpoint(TestCase):
    """The verification URL is built from the configured domain."""

    def test_endpoint(self):
        """The endpoint is ``/cgi/sso.pl`` on the domain, over HTTPS."""
        sso = client.SSOClient('world.openfoodfacts.org')
        self.assertEqual(sso.endpoint,
                         'https://world.openfoodfacts.org/cgi/sso.pl')


class TestFetchProfile(TestCase):
    """Tests for :meth:`client.SSOClient.fetch_profile`."""

    @mock.patch(f'{client.__name__}.requests.post')
    def test_success(self, mock_post):
        """The JSON body is parsed into a :class:`.RemoteProfile`."""
        mock_post.return_value = _response(
            text='{"user_id": "alice", "name": "Alice A",'
                 ' "email": "a@x.com"}'
        )
        sso = client.SSOClient('foo.org', timeout=3)
        profile = sso.fetch_profile(PAYLOAD)

        self.assertEqual(profile, domain.RemoteProfile('alice', 'Alice A',
                                                       'a@x.com'))
        mock_post.assert_called_once_with('https://foo.org/cgi/sso.pl',
                                          data=PAYLOAD, timeout=3)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_optional_fields(self, mock_post):
        """Name and e-mail are optional."""
        mock_post.return_value = _response(text='{"user_id": 42}')
        profile = client.SSOClient('foo.org').fetch_profile(PAYLOAD)
        self.assertEqual(profile.user_id, '42')
        self.assertIsNone(profile.name)
        self.assertIsNone(profile.email)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_transport_error(self, mock_post):
        """A transport failure is raised as :class:`.SSORequestFailed`."""
        mock_post.side_effect = requests.exceptions.ConnectionError('nope')
        with self.assertRaises(SSORequestFailed):
            client.SSOClient('foo.org').fetch_profile(PAYLOAD)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_error_status(self, mock_post):
        """A non-success status is raised as :class:`.SSORequestFailed`."""
        mock_post.return_value = _response(status_code=500, text='oops')
        with self.assertRaises(SSORequestFailed):
            client.SSOClient('foo.org').fetch_profile(PAYLOAD)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_empty_body(self, mock_post):
        """An empty body is raised as :class:`.SSORequestFailed`."""
        mock_post.return_value = _response(text='')
        with self.assertRaises(SSORequestFailed):
            client.SSOClient('foo.org').fetch_profile(PAYLOAD)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_malformed_json(self, mock_post):
        """A body that is not JSON is a :class:`.ProfileParseError`."""
        mock_post.return_value = _response(text='<html>nope</html>')
        with self.assertRaises(ProfileParseError):
            client.SSOClient('foo.org').fetch_profile(PAYLOAD)

    @mock.patch(f'{client.__name__}.requests.post')
    def test_not_an_object(self, mock_post):
        """JSON that is not an object is a :class:`.ProfileParseError`."""
        mock_post.return_value = _response(text='false')
        with self.assertRaises(ProfileParseError):
            client.SSOClient('foo.org').fetch_profile(PAYLOAD)


class TestVerify(TestCase):
    """Tests for :meth:`client.SSOClient.verify`."""

    @mock.patch(f'{client.__name__}.requests.post')
    def test_success(self, mock_post):
        """The profile is returned."""
        mock_post.return_value = _response(text='{"user_id": "alice"}')
        profile = client.SSOClient('foo.org').verify(PAYLOAD)
        self.assertEqual(profile.user_id, 'alice')
        self.assertEqual(mock_post.call_count, 1, 'Exactly one request')

    @mock.patch(f'{client.__name__}.requests.post')
    def test_transport_error(self, mock_post):
        """Transport failures become ``None`` and are not raised."""
        mock_post.side_effect = requests.exceptions.Timeout('slow')
        self.assertIsNone(client.SSOClient('foo.org').verify(PAYLOAD))

    @mock.patch(f'{client.__name__}.requests.post')
    def test_malformed_json(self, mock_post):
        """Parse failures become ``None`` rather than a default profile."""
        mock_post.return_value = _response(text='{"user_id": ')
        self.assertIsNone(client.SSOClient('foo.org').verify(PAYLOAD))
