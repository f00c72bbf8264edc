"""Tests for :mod:`productopener_auth.sessions.store`."""

from unittest import TestCase, mock
from datetime import datetime, timedelta

import jwt
from pytz import UTC
from redis.exceptions import ConnectionError

from ... import domain
from .. import store

SECRET = 'foosecret'


def _info(session_id='abc123'):
    return domain.SessionInfo(
        priority=domain.MAX_PRIORITY,
        provider='AuthProductOpener',
        session_id=session_id,
        user=domain.LocalUser(username='alice', user_id=1),
        user_verified=True
    )


class TestPersist(TestCase):
    """Tests for :meth:`store.SessionStore.persist`."""

    @mock.patch(f'{store.__name__}.redis')
    def test_persist(self, mock_redis):
        """The session record is written with an expiry."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        mock_redis_connection = mock.MagicMock()
        mock_redis.StrictRedis.return_value = mock_redis_connection
        r = store.SessionStore('localhost', 6379, 0, SECRET, duration=60)
        request = domain.InboundRequest(ip_address='10.0.0.1')

        record = r.persist(_info(), request)

        self.assertEqual(record['session_id'], 'abc123')
        self.assertEqual(record['user']['username'], 'alice')
        self.assertEqual(record['ip_address'], '10.0.0.1')
        self.assertEqual(mock_redis_connection.set.call_count, 1)
        key, value = mock_redis_connection.set.call_args[0]
        self.assertEqual(key, 'abc123')
        self.assertEqual(mock_redis_connection.set.call_args[1], {'ex': 60})
        decoded = jwt.decode(value, SECRET, algorithms=['HS256'])
        self.assertEqual(decoded['provider'], 'AuthProductOpener')

    @mock.patch(f'{store.__name__}.redis')
    def test_connection_failed(self, mock_redis):
        """:class:`.SessionCreationFailed` is raised when creation fails."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        mock_redis_connection = mock.MagicMock()
        mock_redis_connection.set.side_effect = ConnectionError
        mock_redis.StrictRedis.return_value = mock_redis_connection
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.SessionCreationFailed):
            r.persist(_info())

    @mock.patch(f'{store.__name__}.redis')
    def test_no_session_id(self, mock_redis):
        """A session id is required."""
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.SessionCreationFailed):
            r.persist(_info(session_id=None))


class TestLoadById(TestCase):
    """Tests for :meth:`store.SessionStore.load_by_id`."""

    @mock.patch(f'{store.__name__}.redis')
    def test_load_persisted(self, mock_redis):
        """A persisted session can be loaded."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        data = {}

        def _set(key, value, ex=None):
            data[key] = value.encode('ascii')

        mock_redis_connection = mock.MagicMock()
        mock_redis_connection.set.side_effect = _set
        mock_redis_connection.get.side_effect = data.get
        mock_redis.StrictRedis.return_value = mock_redis_connection

        r = store.SessionStore('localhost', 6379, 0, SECRET)
        r.persist(_info())
        record = r.load_by_id('abc123')
        self.assertEqual(record['session_id'], 'abc123')
        self.assertEqual(record['user']['user_id'], 1)

    @mock.patch(f'{store.__name__}.redis')
    def test_unknown(self, mock_redis):
        """:class:`.UnknownSession` is raised for missing sessions."""
        mock_redis.StrictRedis.return_value.get.return_value = None
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.UnknownSession):
            r.load_by_id('nope')

    @mock.patch(f'{store.__name__}.redis')
    def test_not_a_token(self, mock_redis):
        """Something other than a JWT is stored."""
        mock_redis.StrictRedis.return_value.get.return_value = b'notatoken'
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.InvalidToken):
            r.load_by_id('abc123')

    @mock.patch(f'{store.__name__}.redis')
    def test_wrong_secret(self, mock_redis):
        """A record signed with another secret is rejected."""
        end_time = datetime.now(tz=UTC) + timedelta(hours=1)
        token = jwt.encode({'end_time': end_time.isoformat()}, 'othersecret',
                           algorithm='HS256')
        mock_redis.StrictRedis.return_value.get.return_value = token
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.InvalidToken):
            r.load_by_id('abc123')

    @mock.patch(f'{store.__name__}.redis')
    def test_expired(self, mock_redis):
        """:class:`.SessionExpired` is raised past the end time."""
        end_time = datetime.now(tz=UTC) - timedelta(seconds=1)
        token = jwt.encode({'end_time': end_time.isoformat()}, SECRET,
                           algorithm='HS256')
        mock_redis.StrictRedis.return_value.get.return_value = token
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.SessionExpired):
            r.load_by_id('abc123')

    @mock.patch(f'{store.__name__}.redis')
    def test_malformed_record(self, mock_redis):
        """A record without an end time is rejected."""
        token = jwt.encode({'session_id': 'abc123'}, SECRET,
                           algorithm='HS256')
        mock_redis.StrictRedis.return_value.get.return_value = token
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.InvalidToken):
            r.load_by_id('abc123')


class TestDeleteById(TestCase):
    """Tests for :meth:`store.SessionStore.delete_by_id`."""

    @mock.patch(f'{store.__name__}.redis')
    def test_delete(self, mock_redis):
        """The session record is removed."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        mock_redis_connection = mock.MagicMock()
        mock_redis.StrictRedis.return_value = mock_redis_connection
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        r.delete_by_id('abc123')
        mock_redis_connection.delete.assert_called_once_with('abc123')

    @mock.patch(f'{store.__name__}.redis')
    def test_connection_failed(self, mock_redis):
        """:class:`.SessionDeletionFailed` is raised when deletion fails."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        mock_redis_connection = mock.MagicMock()
        mock_redis_connection.delete.side_effect = ConnectionError
        mock_redis.StrictRedis.return_value = mock_redis_connection
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.SessionDeletionFailed):
            r.delete_by_id('abc123')

    @mock.patch(f'{store.__name__}.redis')
    def test_other_failure(self, mock_redis):
        """Any other error is also reported as a failed deletion."""
        mock_redis.exceptions.ConnectionError = ConnectionError
        mock_redis_connection = mock.MagicMock()
        mock_redis_connection.delete.side_effect = TypeError('bad key')
        mock_redis.StrictRedis.return_value = mock_redis_connection
        r = store.SessionStore('localhost', 6379, 0, SECRET)
        with self.assertRaises(store.SessionDeletionFailed):
            r.delete_by_id('abc123')


class TestGetRedisSession(TestCase):
    """Tests for :func:`store.get_redis_session`."""

    @mock.patch(f'{store.__name__}.redis')
    def test_from_config(self, mock_redis):
        """Connection parameters are read from configuration."""
        r = store.get_redis_session({
            'REDIS_HOST': 'redis',
            'REDIS_PORT': '1234',
            'REDIS_DATABASE': '4',
            'JWT_SECRET': SECRET,
            'SESSION_DURATION': '60'
        })
        mock_redis.StrictRedis.assert_called_once_with(host='redis',
                                                       port=1234, db=4)
        self.assertIsInstance(r, store.SessionStore)
