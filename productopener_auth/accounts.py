"""
Provision local accounts for users authenticated via Product Opener.

The first time a remote user signs in, a local account named after their
remote user id is created. On every sign-in the account's real name and
e-mail address are refreshed from the remote profile.
"""

import re
import ipaddress
import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from pytz import UTC
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.session import Session

from . import util
from .domain import LocalUser, RemoteProfile, NOTIFICATION_OPTIONS
from .exceptions import InvalidUserName, Unavailable
from .models import DBUser, DBUserOption

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 255
"""Maximum length of an account name, in bytes."""

INVALID_USERNAME_CHARACTERS = re.compile(r'[#<>\[\]|{}/@:\x00-\x1f\x7f]')

InitUserHook = Callable[[LocalUser, bool], bool]
"""
Called with ``(user, is_new)`` before a new account is finalized.

May create the account itself. Returning ``False`` stops the remote
profile from being copied into the account.
"""


def accept_all(user: LocalUser, is_new: bool) -> bool:
    """Default :data:`InitUserHook`; always proceeds."""
    return True


def canonicalize_username(name: Optional[str]) -> str:
    """
    Get the local account name for a remote user id.

    Parameters
    ----------
    name : str

    Returns
    -------
    str

    Raises
    ------
    :class:`.InvalidUserName`
        Raised if ``name`` is empty, too long, contains characters that are
        not allowed in account names, or is an IP address.

    """
    username = (name or '').strip()
    if not username:
        raise InvalidUserName('Invalid user name: empty')
    if len(username.encode('utf-8')) > MAX_USERNAME_LENGTH:
        raise InvalidUserName(f'Invalid user name: longer than'
                              f' {MAX_USERNAME_LENGTH} bytes')
    if INVALID_USERNAME_CHARACTERS.search(username):
        raise InvalidUserName(f'Invalid user name: {username!r}')
    try:
        ipaddress.ip_address(username)
    except ValueError:
        return username
    raise InvalidUserName(f'Invalid user name: {username} is an IP address')


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return UTC.localize(value)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _to_domain(db_user: DBUser) -> LocalUser:
    return LocalUser(
        username=db_user.user_name,
        user_id=db_user.user_id,
        real_name=db_user.real_name,
        email=db_user.email,
        email_authenticated=_to_utc(db_user.email_authenticated),
        token=db_user.token,
        options={opt.up_property: opt.up_value for opt in db_user.options}
    )


def _load_dbuser(username: str, session: Session) -> Optional[DBUser]:
    try:
        db_user: Optional[DBUser] = session.query(DBUser) \
            .filter(DBUser.user_name == username) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return db_user


def _update_dbuser(db_user: DBUser, user: LocalUser) -> None:
    db_user.real_name = user.real_name
    db_user.email = user.email
    db_user.email_authenticated = _to_naive_utc(user.email_authenticated)
    db_user.token = user.token
    existing = {opt.up_property: opt for opt in db_user.options}
    for key, value in user.options.items():
        if key in existing:
            existing[key].up_value = value
        else:
            db_user.options.append(DBUserOption(up_property=key,
                                                up_value=value))


def get_user_by_name(username: str) -> Optional[LocalUser]:
    """
    Load a local account by name.

    Returns
    -------
    :class:`.LocalUser` or None

    Raises
    ------
    :class:`.Unavailable`

    """
    with util.transaction() as session:
        db_user = _load_dbuser(username, session)
        if db_user is None:
            return None
        return _to_domain(db_user)


def apply_profile(user: LocalUser, profile: RemoteProfile,
                  notify: bool = False,
                  now: Optional[datetime] = None) -> LocalUser:
    """
    Copy a remote profile into a local account.

    Nothing is persisted; see :func:`save_user`.

    Parameters
    ----------
    user : :class:`.LocalUser`
    profile : :class:`.RemoteProfile`
    notify : bool
        If ``True``, e-mail notification preferences are switched on.
    now : datetime
        Time at which the e-mail address is considered verified.

    Returns
    -------
    :class:`.LocalUser`
        A new value; ``user`` is not changed.

    """
    if now is None:
        now = datetime.now(tz=UTC)
    options = dict(user.options)
    if notify:
        options.update({key: '1' for key in NOTIFICATION_OPTIONS})
    email = profile.email or ''
    return user._replace(
        real_name=profile.name or '',
        email=email,
        email_authenticated=now,
        token=secrets.token_hex(16),
        options=options
    )


def save_user(user: LocalUser) -> LocalUser:
    """
    Persist a local account and its preferences.

    If the account is new but another request stored an account with the
    same name in the meantime, that account is updated instead.

    Returns
    -------
    :class:`.LocalUser`
        The stored account.

    Raises
    ------
    :class:`.Unavailable`

    """
    try:
        with util.transaction() as session:
            db_user: Optional[DBUser] = None
            if user.exists:
                db_user = session.get(DBUser, user.user_id)
            if db_user is None:
                db_user = DBUser(user_name=user.username)
                session.add(db_user)
            _update_dbuser(db_user, user)
            session.commit()
            return _to_domain(db_user)
    except IntegrityError:
        logger.info('User %s was created concurrently', user.username)
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e

    with util.transaction() as session:
        db_user = _load_dbuser(user.username, session)
        if db_user is None:
            raise Unavailable(f'Could not save user {user.username}')
        _update_dbuser(db_user, user)
        session.commit()
        return _to_domain(db_user)


def provision(profile: RemoteProfile, notify: bool = False,
              init_user_hook: Optional[InitUserHook] = None) -> LocalUser:
    """
    Get or create the local account for a remote profile, and refresh it.

    Parameters
    ----------
    profile : :class:`.RemoteProfile`
    notify : bool
        Whether to switch on e-mail notifications.
    init_user_hook : callable
        Invoked before a new account is finalized. See :data:`InitUserHook`.

    Returns
    -------
    :class:`.LocalUser`

    Raises
    ------
    :class:`.InvalidUserName`
        Raised if the remote user id cannot be used as an account name.

    """
    if init_user_hook is None:
        init_user_hook = accept_all
    username = canonicalize_username(profile.user_id)

    proceed = True
    user = get_user_by_name(username)
    if user is None:
        user = LocalUser(username=username)
        proceed = init_user_hook(user, True)
        # The hook, or a concurrent request, may have created the account.
        existing = get_user_by_name(username)
        if existing is not None:
            logger.debug('Reusing account %s created during init', username)
            user = existing

    if proceed:
        user = apply_profile(user, profile, notify=notify)
    else:
        logger.debug('Init hook declined profile for %s', username)
    return save_user(user)
