"""
Single sign-on session bridge for Product Opener.

This package lets a Flask application accept users who have signed in to
Product Opener (the software behind Open Food Facts). Product Opener sets an
SSO cookie on the shared domain; on a request without a live local session,
the cookie is verified against Product Opener's ``/cgi/sso.pl`` endpoint, a
local account mirroring the remote user is provisioned, and a local session
is established for it.

Quick start
-----------

.. code-block:: python

   # yourapp/factory.py
   from flask import Flask
   from productopener_auth.auth import Auth


   def create_web_app() -> Flask:
       app = Flask('foo')
       app.config['SSO_PROVIDER_PRIORITY'] = 50
       app.config['SSO_DOMAIN'] = 'world.openfoodfacts.org'
       Auth(app)    # <- Install the extension.
       return app

The session for the current request is then available as
``flask.request.auth``; it is ``None`` for anonymous requests.
"""

from .domain import InboundRequest, RemoteProfile, LocalUser, SessionInfo, \
    ProviderConfig
