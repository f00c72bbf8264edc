"""Web Server Gateway Interface entry-point."""

import os

from productopener_auth.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # Keep ``SERVER_NAME`` explicitly configured; uWSGI may pass in a
        # container ID here.
        if key == 'SERVER_NAME' or type(value) is not str:
            continue
        os.environ[key] = value

    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
