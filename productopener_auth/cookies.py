"""Provides functions for working with Product Opener SSO cookies."""

from typing import Dict, Optional, Mapping
from urllib.parse import quote, unquote_plus

DELETED = 'deleted'
"""Value a browser may send for a cookie that has been cleared."""

SEPARATOR = '&'


def unpack(cookie: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Unpack the Product Opener SSO cookie.

    The cookie value is a flat, ``&``-delimited list of alternating keys and
    values, e.g. ``user_id&alice&user_session&abc123``. Each token is
    url-decoded after splitting, so ``+`` becomes a space.

    An odd trailing token (a key without a value) is dropped. When a key
    occurs more than once the last value wins. No other validation is
    performed here.

    Parameters
    ----------
    cookie : str or None
        Raw value of the SSO cookie.

    Returns
    -------
    dict or None
        ``None`` if the cookie is absent, empty, or has been deleted.

    """
    if cookie is None or cookie == '' or cookie == DELETED:
        return None
    tokens = [unquote_plus(token) for token in cookie.split(SEPARATOR)]
    return dict(zip(tokens[0::2], tokens[1::2]))


def pack(payload: Mapping[str, str]) -> str:
    """
    Generate a value for the SSO cookie.

    Parameters
    ----------
    payload : mapping
        Keys and values to encode.

    Returns
    -------
    str

    """
    return SEPARATOR.join(
        quote(str(token), safe='@')
        for item in payload.items() for token in item
    )
