"""Provides the session introspection API."""

from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from . import util
from .domain import to_dict

blueprint = Blueprint('productopener_auth', __name__, url_prefix='')


@blueprint.route('/session', methods=['GET'])
def get_session() -> Response:
    """Describe the session bound to this request."""
    info = getattr(request, 'auth', None)
    if info is None:
        response = jsonify(reason='No session')
        response.status_code = HTTPStatus.UNAUTHORIZED
        return response
    return jsonify(to_dict(info))


@blueprint.route('/status', methods=['GET'])
def service_status() -> Response:
    """Health check for the account database."""
    if not util.is_available():
        response = jsonify(database=False)
        response.status_code = HTTPStatus.SERVICE_UNAVAILABLE
        return response
    return jsonify(database=True)
