"""
Internal service API for the distributed session store.

Used to persist and load local sessions established via SSO.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import dateutil.parser
import jwt
import redis
from flask import Flask
from pytz import UTC

from .. import domain
from ..exceptions import SessionCreationFailed, SessionDeletionFailed, \
    SessionExpired, UnknownSession, InvalidToken

logger = logging.getLogger(__name__)


class SessionStore(object):
    """
    Manages a connection to Redis.

    In fact, the StrictRedis instance is thread safe and connections are
    attached at the time a command is executed. This class simply provides a
    container for configuration.
    """

    def __init__(self, host: str, port: int, db: int, secret: str,
                 duration: int = 7200) -> None:
        """Open the connection to Redis."""
        logger.debug('New Redis connection at %s, port %s', host, port)
        self.r = redis.StrictRedis(host=host, port=port, db=db)
        self._secret = secret
        self._duration = duration

    def persist(self, info: domain.SessionInfo,
                request: Optional[domain.InboundRequest] = None) -> dict:
        """
        Persist a session described by ``info``.

        Parameters
        ----------
        info : :class:`domain.SessionInfo`
        request : :class:`domain.InboundRequest`
            The request for which the session is being created.

        Returns
        -------
        dict
            The stored session record.

        Raises
        ------
        :class:`SessionCreationFailed`

        """
        if not info.session_id:
            raise SessionCreationFailed('Session id is required')
        start_time = datetime.now(tz=UTC)
        end_time = start_time + timedelta(seconds=self._duration)
        record = {
            'session_id': info.session_id,
            'provider': info.provider,
            'priority': info.priority,
            'user': domain.to_dict(info.user) if info.user else None,
            'ip_address': request.ip_address if request else None,
            'start_time': start_time.isoformat(),
            'end_time': end_time.isoformat()
        }
        try:
            self.r.set(info.session_id, self._encode(record),
                       ex=self._duration)
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except Exception as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Persisted session %s', info.session_id)
        return record

    def load_by_id(self, session_id: str) -> dict:
        """
        Get session data by session ID.

        Raises
        ------
        :class:`UnknownSession`
            No session with that id exists.
        :class:`InvalidToken`
            The stored record could not be decoded.
        :class:`SessionExpired`

        """
        session_jwt = self.r.get(session_id)
        if not session_jwt:
            logger.debug('No such session: %s', session_id)
            raise UnknownSession(f'Failed to find session {session_id}')
        record = self._decode(session_jwt)
        try:
            end_time = dateutil.parser.parse(record['end_time'])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken('Session record malformed') from e
        if end_time <= datetime.now(tz=UTC):
            raise SessionExpired(f'Session {session_id} has expired')
        return record

    def delete_by_id(self, session_id: str) -> None:
        """
        Delete a session in the key-value store by ID.

        Parameters
        ----------
        session_id : str

        Raises
        ------
        :class:`SessionDeletionFailed`

        """
        try:
            self.r.delete(session_id)
        except redis.exceptions.ConnectionError as e:
            raise SessionDeletionFailed(f'Connection failed: {e}') from e
        except Exception as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        logger.debug('Deleted session %s', session_id)

    def _encode(self, record: dict) -> str:
        return jwt.encode(record, self._secret, algorithm='HS256')

    def _decode(self, session_jwt: Any) -> dict:
        if isinstance(session_jwt, bytes):
            session_jwt = session_jwt.decode('ascii')
        try:
            return dict(jwt.decode(session_jwt, self._secret,
                                   algorithms=['HS256']))
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Invalid or corrupted session token') from e


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('JWT_SECRET', 'foosecret')
    app.config.setdefault('SESSION_DURATION', '7200')


def get_redis_session(config: Mapping[str, Any]) -> SessionStore:
    """Get a new session store from application configuration."""
    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    db = int(config.get('REDIS_DATABASE', '0'))
    secret = config['JWT_SECRET']
    duration = int(config.get('SESSION_DURATION', '7200'))
    return SessionStore(host, port, db, secret, duration)
