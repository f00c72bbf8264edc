"""
Integration with the distributed session store.

Sessions established via SSO are handed to a key-value store, which holds
the session record as a signed JSON web token keyed by session id. The
session id itself is what the client carries in its session cookie.

See :mod:`.store`.
"""

from .store import SessionStore, init_app, get_redis_session
