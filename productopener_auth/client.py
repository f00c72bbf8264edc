"""
Client for the Product Opener single sign-on endpoint.

Product Opener sets a cookie on the shared domain when a user logs in. The
contents of that cookie are posted back to ``/cgi/sso.pl``, which answers
with the user's profile as JSON if the session behind the cookie is valid.
"""

import json
import logging
from typing import Mapping, Optional

import requests

from .domain import RemoteProfile
from .exceptions import SSOError, SSORequestFailed, ProfileParseError

logger = logging.getLogger(__name__)

SSO_PATH = '/cgi/sso.pl'


class SSOClient(object):
    """Verifies SSO cookie payloads against a Product Opener server."""

    def __init__(self, domain: str, timeout: float = 10) -> None:
        """
        Set up the client.

        Parameters
        ----------
        domain : str
            Host name of the Product Opener server.
        timeout : float
            Seconds to wait for the server before giving up.

        """
        self._domain = domain
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        """URL of the verification endpoint."""
        return f'https://{self._domain}{SSO_PATH}'

    def fetch_profile(self, payload: Mapping[str, str]) -> RemoteProfile:
        """
        Validate an SSO cookie payload and get the user profile.

        Parameters
        ----------
        payload : mapping
            The decoded SSO cookie. Sent as the body of the request.

        Returns
        -------
        :class:`.RemoteProfile`

        Raises
        ------
        :class:`.SSORequestFailed`
            The request could not be made, was refused, or had no body.
        :class:`.ProfileParseError`
            The body is not a JSON object.

        """
        url = self.endpoint
        logger.debug('Validating auth cookie %s from %s', payload, url)
        try:
            response = requests.post(url, data=dict(payload),
                                     timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            raise SSORequestFailed(f'Request to {url} failed: {e}') from e

        if not response.ok:
            raise SSORequestFailed(
                f'{url} responded with status {response.status_code}'
            )
        if not response.content:
            raise SSORequestFailed(f'{url} responded with an empty body')

        logger.debug('SSO response for cookie %s was %s',
                     payload, response.text)
        try:
            data = json.loads(response.text)
        except ValueError as e:
            raise ProfileParseError(f'Response is not JSON: {e}') from e
        if not isinstance(data, dict):
            raise ProfileParseError('Response is not a JSON object')
        return RemoteProfile.from_json(data)

    def verify(self, payload: Mapping[str, str]) -> Optional[RemoteProfile]:
        """
        Validate an SSO cookie payload, without raising.

        Returns
        -------
        :class:`.RemoteProfile` or None
            ``None`` if the profile could not be retrieved for any reason.

        """
        try:
            return self.fetch_profile(payload)
        except SSORequestFailed as e:
            if isinstance(e.__cause__, requests.exceptions.RequestException):
                logger.error('Could not retrieve user information for'
                             ' session cookie %s: %s', payload, e)
            else:
                logger.info('SSO response for cookie %s was refused: %s',
                            payload, e)
        except SSOError as e:
            logger.info('SSO response for cookie %s was unusable: %s',
                        payload, e)
        return None
