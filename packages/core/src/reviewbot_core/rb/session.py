"""Authenticated HTTP channel to a Review Board server.

Credentials are sent preemptively (HTTP Basic on every request) and only to
the host and port of the configured base URL. ensure_authenticated() checks
the session once and, on a transport failure, re-applies the credentials and
tries exactly one more time.

One ReviewboardSession is not meant to be shared between concurrent callers.
"""

from __future__ import annotations

import logging

import requests
from requests.auth import HTTPBasicAuth

from reviewbot_core.config import ConnectionConfig
from reviewbot_core.errors import AuthenticationError, ConnectionClosedError
from reviewbot_core.rb.decoding import decode
from reviewbot_core.rb.urls import ANY_PORT, extract_host_and_port, logout_url, session_url

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"
PATCH_MEDIA_TYPE = "text/x-patch"


class ScopedBasicAuth(HTTPBasicAuth):
    """HTTP Basic credentials attached only to requests for one host and port."""

    def __init__(self, username: str, password: str, host: str, port: int | None):
        super().__init__(username, password)
        self.host = host.lower()
        self.port = port

    def __call__(self, r):
        host, port = extract_host_and_port(r.url)
        if host.lower() != self.host or (self.port is not ANY_PORT and port != self.port):
            logger.debug("Not sending credentials to %s", r.url)
            return r
        return super().__call__(r)


class ReviewboardSession:
    def __init__(self, config: ConnectionConfig, http: requests.Session | None = None):
        self.config = config
        self._http = http if http is not None else requests.Session()
        self._closed = False
        self._install_credentials()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def username(self) -> str:
        return self.config.username

    def _install_credentials(self) -> None:
        host, port = extract_host_and_port(self.config.base_url)
        self._http.auth = ScopedBasicAuth(self.config.username, self.config.password, host, port)

    # ------------------------------------------------------------------ #
    # Session lifecycle                                                    #
    # ------------------------------------------------------------------ #

    def ensure_authenticated(self) -> None:
        """Raise AuthenticationError unless the server accepts our credentials."""
        status = self._check_session(retry=True)
        if not 200 <= status < 300:
            raise AuthenticationError(f"Session check against {self.base_url} failed: HTTP status={status}")

    def _check_session(self, retry: bool) -> int:
        try:
            return self._request("GET", session_url(self.base_url), headers={"Accept": XML_MEDIA_TYPE}).status_code
        except requests.RequestException as e:
            if not retry:
                raise AuthenticationError(f"Session check against {self.base_url} failed: {e}") from e
            logger.warning("Session check failed (%s); re-applying credentials and retrying once.", e)
            self._install_credentials()
            return self._check_session(retry=False)

    def logout(self) -> bool:
        """Best-effort logout. Never raises; returns True only on HTTP 200."""
        try:
            return self._request("POST", logout_url(self.base_url)).status_code == 200
        except Exception as e:
            logger.warning("Logout from %s failed (%s): %s", self.base_url, type(e).__name__, e)
            return False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._http.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Requests                                                             #
    # ------------------------------------------------------------------ #

    def get_xml(self, url: str) -> bytes:
        response = self._request("GET", url, headers={"Accept": XML_MEDIA_TYPE})
        response.raise_for_status()
        return response.content

    def fetch(self, url: str, shape: str):
        """GET ``url`` and decode the body as the named response shape."""
        return decode(self.get_xml(url), shape)

    def get_patch(self, url: str) -> str:
        response = self._request("GET", url, headers={"Accept": PATCH_MEDIA_TYPE})
        response.raise_for_status()
        return response.text

    def post_form(self, url: str, data: dict) -> requests.Response:
        return self._request("POST", url, data=data)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        if self._closed:
            raise ConnectionClosedError(f"Connection to {self.base_url} is closed")
        logger.debug("%s %s", method, url)
        return self._http.request(method, url, timeout=self.config.timeout, **kwargs)
