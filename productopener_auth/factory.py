"""Provides an app factory for the SSO bridge."""

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from . import routes, util
from .app_logging import setup_logger
from .auth import Auth


def jsonify_exception(error: HTTPException):
    exc_resp = error.get_response()
    response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def create_web_app() -> Flask:
    """Initialize an instance of the SSO bridge application."""
    app = Flask('productopener_auth')
    app.config.from_pyfile('config.py')
    setup_logger(app.config.get('LOGLEVEL', 'INFO'))

    Auth(app)
    app.register_blueprint(routes.blueprint)
    app.errorhandler(HTTPException)(jsonify_exception)

    if app.config.get('CREATE_DB'):
        with app.app_context():
            util.create_all()
    return app
