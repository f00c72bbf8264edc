"""Flask configuration for the Product Opener SSO bridge."""

import os

SSO_PROVIDER_PRIORITY = os.environ.get('SSO_PROVIDER_PRIORITY')
"""Session provider priority, between 1 and 100. Required."""

SSO_SESSION_COOKIE_NAME = os.environ.get('SSO_SESSION_COOKIE_NAME',
                                         '_AuthProductOpenerSession')
SSO_SESSION_COOKIE_OPTIONS = {
    'domain': os.environ.get('SSO_SESSION_COOKIE_DOMAIN') or None,
    'path': os.environ.get('SSO_SESSION_COOKIE_PATH', '/'),
    'secure': os.environ.get('SSO_SESSION_COOKIE_SECURE', '1') == '1',
    'httponly': True,
    'samesite': os.environ.get('SSO_SESSION_COOKIE_SAMESITE', 'Lax')
}
"""Passed to :meth:`flask.Response.set_cookie` for the session cookie."""

SSO_COOKIE_NAME = os.environ.get('SSO_COOKIE_NAME', 'session')
"""Name of the cookie set by Product Opener."""

SSO_DOMAIN = os.environ.get('SSO_DOMAIN', 'world.openfoodfacts.org')
"""Product Opener server that verifies SSO cookies."""

SSO_NOTIFY = os.environ.get('SSO_NOTIFY', '0')
"""Turn on e-mail notifications for users created via SSO."""

SSO_TIMEOUT = os.environ.get('SSO_TIMEOUT', '10')

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')
SESSION_DURATION = os.environ.get('SESSION_DURATION', '7200')

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///')
SQLALCHEMY_TRACK_MODIFICATIONS = False

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
CREATE_DB = os.environ.get('CREATE_DB', '0') == '1'
