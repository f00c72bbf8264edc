"""Flask integration: attaches the SSO session to each request."""

import logging
from typing import Optional

from flask import Flask, Response, request

from . import util
from .accounts import InitUserHook
from .domain import InboundRequest, ProviderConfig, SessionInfo
from .provider import SSOSessionProvider
from .sessions import store

logger = logging.getLogger(__name__)


class Auth(object):
    """
    Attaches session information to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from productopener_auth.auth import Auth


       def create_web_app() -> Flask:
          app = Flask('someapp')
          app.config.from_pyfile('config.py')
          Auth(app)
          return app

    The resolved :class:`.SessionInfo`, or ``None`` for anonymous requests,
    is available as ``flask.request.auth``.
    """

    def __init__(self, app: Optional[Flask] = None,
                 init_user_hook: Optional[InitUserHook] = None) -> None:
        """
        Initialize ``app`` with the SSO session provider.

        Parameters
        ----------
        app : :class:`Flask`
        init_user_hook : callable
            See :data:`.accounts.InitUserHook`.

        """
        self.init_user_hook = init_user_hook
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Build the session provider and attach it to the Flask app.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if the provider priority is missing or out of range.

        """
        self.app = app
        util.init_app(app)
        store.init_app(app)
        self.provider = SSOSessionProvider(
            ProviderConfig.from_mapping(app.config),
            store.get_redis_session(app.config),
            init_user_hook=self.init_user_hook
        )
        self.app.before_request(self.load_session)
        self.app.after_request(self.set_session_cookie)
        app.extensions['productopener_auth'] = self

    def load_session(self) -> None:
        """Resolve the session for the current request."""
        config = self.provider.config
        inbound = InboundRequest(
            session_id=request.cookies.get(config.session_cookie_name),
            sso_cookie=request.cookies.get(config.sso_cookie_name),
            ip_address=request.headers.get('X-Real-IP', request.remote_addr)
        )
        request.auth = self.provider.provide_session_info(inbound)

    def set_session_cookie(self, response: Response) -> Response:
        """Send the session cookie for a newly established session."""
        info: Optional[SessionInfo] = getattr(request, 'auth', None)
        if info is not None and not info.persisted and info.session_id:
            config = self.provider.config
            logger.debug('Setting session cookie %s',
                         config.session_cookie_name)
            response.set_cookie(config.session_cookie_name, info.session_id,
                                **config.session_cookie_options)
        return response
