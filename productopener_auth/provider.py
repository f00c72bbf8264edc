"""
Session provider for users authenticated by Product Opener.

A request is bound to a session in one of two ways. If the client presents
the id of a live local session, that session is resumed. Otherwise the
Product Opener SSO cookie is verified with the remote server and, if the
server vouches for the user, a local account is provisioned and a new
session is established for it.

Failures talking to Product Opener leave the request anonymous. A remote
user id that cannot be used as a local account name is an error.
"""

import logging
import uuid
from typing import Dict, Optional

from . import accounts, cookies
from .client import SSOClient
from .domain import InboundRequest, LocalUser, ProviderConfig, SessionInfo, \
    MIN_PRIORITY, MAX_PRIORITY, REMOTE_USER_FIELD
from .exceptions import ConfigurationError, UnknownSession, InvalidToken, \
    SessionExpired
from .sessions.store import SessionStore

logger = logging.getLogger(__name__)


class SSOSessionProvider(object):
    """Resolves the session for an inbound request."""

    name = 'AuthProductOpener'

    def __init__(self, config: ProviderConfig, sessions: SessionStore,
                 client: Optional[SSOClient] = None,
                 init_user_hook: Optional[accounts.InitUserHook] = None) \
            -> None:
        """
        Set up the provider.

        Parameters
        ----------
        config : :class:`.ProviderConfig`
        sessions : :class:`.SessionStore`
            Store that resolves and persists local sessions.
        client : :class:`.SSOClient`
            Defaults to a client for :attr:`.ProviderConfig.domain`.
        init_user_hook : callable
            See :data:`.accounts.InitUserHook`.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if the priority is missing or out of range.

        """
        if config.priority is None:
            raise ConfigurationError('priority must be specified')
        if isinstance(config.priority, bool) \
                or not isinstance(config.priority, int) \
                or not MIN_PRIORITY <= config.priority <= MAX_PRIORITY:
            raise ConfigurationError(f'Invalid priority: {config.priority}')

        self.config = config
        self.priority: int = config.priority
        self.sessions = sessions
        if client is None:
            client = SSOClient(config.domain, timeout=config.timeout)
        self.client = client
        self.init_user_hook = init_user_hook

    def provide_session_info(self, request: InboundRequest) \
            -> Optional[SessionInfo]:
        """
        Get the session for ``request``.

        Parameters
        ----------
        request : :class:`.InboundRequest`

        Returns
        -------
        :class:`.SessionInfo` or None
            ``None`` if the request is anonymous.

        Raises
        ------
        :class:`.InvalidUserName`
            Raised if the remote user id is not a valid account name.

        """
        session_id = request.session_id
        record = self._load_live(session_id) if session_id else None
        if record is not None:
            user = None
            if record.get('user'):
                user = LocalUser.from_dict(record['user'])
            return SessionInfo(self.priority, self.name,
                               session_id=session_id, user=user,
                               user_verified=user is not None,
                               persisted=True)

        payload = self._get_remote_user_info(request)
        return self._new_session_for_request(payload, request)

    def new_session_info(self, session_id: Optional[str] = None) -> None:
        """Sessions are never started without a request; always ``None``."""
        return None

    def _load_live(self, session_id: str) -> Optional[dict]:
        try:
            return self.sessions.load_by_id(session_id)
        except (UnknownSession, InvalidToken, SessionExpired) as e:
            logger.debug('Session %s is not live: %s', session_id, e)
            return None

    def _get_remote_user_info(self, request: InboundRequest) \
            -> Optional[Dict[str, str]]:
        payload = cookies.unpack(request.sso_cookie)
        if payload is None:
            logger.info('No session cookie found for request.')
            return None
        logger.debug('Session cookie found for request: %s',
                     request.sso_cookie)
        return payload

    def _new_session_for_request(self, payload: Optional[Dict[str, str]],
                                 request: InboundRequest) \
            -> Optional[SessionInfo]:
        if payload is None or REMOTE_USER_FIELD not in payload:
            return None

        profile = self.client.verify(payload)
        if profile is None:
            return None

        user = accounts.provision(profile, notify=self.config.notify,
                                  init_user_hook=self.init_user_hook)

        info = SessionInfo(MAX_PRIORITY, self.name,
                           session_id=str(uuid.uuid4()), user=user,
                           user_verified=True, persisted=False)
        self.sessions.persist(info, request)
        logger.debug('Established session %s for %s',
                     info.session_id, user.username)
        return info
