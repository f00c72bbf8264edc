"""Defines identity and session concepts for the Product Opener SSO bridge."""

from typing import Any, Optional, NamedTuple, Dict, Mapping
from datetime import datetime

import dateutil.parser

from .exceptions import ConfigurationError

MIN_PRIORITY = 1
"""Lowest priority a session provider may claim a request with."""

MAX_PRIORITY = 100
"""Highest priority; used for sessions established via SSO."""

REMOTE_USER_FIELD = 'user_id'
"""Key identifying the remote user, in the SSO cookie and the profile."""

NOTIFICATION_OPTIONS = (
    'enotifwatchlistpages',
    'enotifusertalkpages',
    'enotifminoredits',
    'enotifrevealaddr',
)
"""E-mail notification preferences enabled for new SSO users."""

DEFAULT_SESSION_COOKIE_NAME = '_AuthProductOpenerSession'
DEFAULT_SSO_COOKIE_NAME = 'session'

_TRUTHY = ('1', 'true', 'yes', 'on')


class InboundRequest(NamedTuple):
    """The parts of an inbound web request that matter for authentication."""

    session_id: Optional[str] = None
    """Local session identifier from the session cookie, if any."""

    sso_cookie: Optional[str] = None
    """Raw value of the Product Opener SSO cookie, if any."""

    ip_address: Optional[str] = None
    """Client IP address."""


class RemoteProfile(NamedTuple):
    """User profile returned by the Product Opener SSO endpoint."""

    user_id: str
    """Remote user identifier; becomes the local account name."""

    name: Optional[str] = None
    """Display name."""

    email: Optional[str] = None
    """E-mail address."""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> 'RemoteProfile':
        """Build a profile from a decoded JSON object."""
        def _str(value: Any) -> Optional[str]:
            return None if value is None else str(value)

        user_id = data.get(REMOTE_USER_FIELD)
        return cls(user_id='' if user_id is None else str(user_id),
                   name=_str(data.get('name')),
                   email=_str(data.get('email')))


class LocalUser(NamedTuple):
    """A durable local account, keyed by the remote user identifier."""

    username: str
    """Local account name; equal to :attr:`RemoteProfile.user_id`."""

    user_id: Optional[int] = None
    """Database identifier. If ``None``, the account is not stored yet."""

    real_name: str = ''
    """The user's real name, copied from the remote profile."""

    email: str = ''
    """The user's e-mail address, copied from the remote profile."""

    email_authenticated: Optional[datetime] = None
    """When the e-mail address was last verified."""

    token: Optional[str] = None
    """Per-user secret token; rotated on every provisioning."""

    options: Dict[str, str] = {}
    """User preferences."""

    @property
    def exists(self) -> bool:
        """Whether the account has been stored."""
        return self.user_id is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'LocalUser':
        """Rebuild an account from the output of :func:`to_dict`."""
        email_authenticated = data.get('email_authenticated')
        if isinstance(email_authenticated, str):
            email_authenticated = dateutil.parser.parse(email_authenticated)
        return cls(
            username=data['username'],
            user_id=data.get('user_id'),
            real_name=data.get('real_name') or '',
            email=data.get('email') or '',
            email_authenticated=email_authenticated,
            token=data.get('token'),
            options=dict(data.get('options') or {})
        )


class SessionInfo(NamedTuple):
    """
    Describes how a session is bound to a request.

    The host arbitrates between competing session providers using
    :attr:`priority`.
    """

    priority: int
    """Rank of this claim, between :data:`MIN_PRIORITY` and
    :data:`MAX_PRIORITY`."""

    provider: str
    """Name of the provider that produced this descriptor."""

    session_id: Optional[str] = None
    """Identifier of the local session."""

    user: Optional[LocalUser] = None
    """The user bound to the session, when known to the provider."""

    user_verified: bool = False
    """Whether :attr:`user` has been verified by the provider."""

    persisted: bool = False
    """Whether the session was already persisted when this was created."""


class ProviderConfig(NamedTuple):
    """Configuration for :class:`.provider.SSOSessionProvider`."""

    priority: Optional[int]
    """Provider priority. Required."""

    session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME
    """Name of the cookie holding the local session id."""

    session_cookie_options: Dict[str, Any] = {}
    """Keyword arguments for setting the session cookie on responses."""

    sso_cookie_name: str = DEFAULT_SSO_COOKIE_NAME
    """Name of the cookie set by Product Opener."""

    domain: str = ''
    """Domain of the Product Opener server that verifies SSO cookies."""

    notify: bool = False
    """Whether to turn on e-mail notifications for provisioned users."""

    timeout: float = 10
    """Timeout in seconds for the verification request."""

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'ProviderConfig':
        """
        Build a configuration from Flask-style upper-case settings.

        Parameters
        ----------
        config : mapping
            Typically ``app.config``.

        Returns
        -------
        :class:`ProviderConfig`

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if a numeric setting cannot be parsed.

        """
        priority = config.get('SSO_PROVIDER_PRIORITY')
        if priority in (None, ''):
            priority = None
        elif not isinstance(priority, int):
            try:
                priority = int(priority)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f'Invalid priority: {priority}') \
                    from e
        try:
            timeout = float(config.get('SSO_TIMEOUT', 10))
        except (TypeError, ValueError) as e:
            raise ConfigurationError('Invalid SSO timeout') from e

        notify = config.get('SSO_NOTIFY', False)
        if isinstance(notify, str):
            notify = notify.strip().lower() in _TRUTHY

        return cls(
            priority=priority,
            session_cookie_name=config.get('SSO_SESSION_COOKIE_NAME')
            or DEFAULT_SESSION_COOKIE_NAME,
            session_cookie_options=dict(
                config.get('SSO_SESSION_COOKIE_OPTIONS') or {}
            ),
            sso_cookie_name=config.get('SSO_COOKIE_NAME')
            or DEFAULT_SSO_COOKIE_NAME,
            domain=config.get('SSO_DOMAIN') or '',
            notify=bool(notify),
            timeout=timeout
        )


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Child NamedTuples are cast recursively and datetimes are rendered in
    ISO-8601, so that the result is ready for JSON encoding.
    """
    if not hasattr(obj, '_asdict'):
        return {}

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            return to_dict(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, dict):
            return {k: _cast(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_cast(v) for v in value]
        return value

    return {key: _cast(value) for key, value in obj._asdict().items()}
