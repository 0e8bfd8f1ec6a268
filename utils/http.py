"""HTTP utilities for the tool synchronizer.

Provides:
- Session creation with connection pooling and the run's proxy settings
- A request wrapper that turns transport failures and error statuses into
  ``NetworkError``

Every request is a single attempt: the adapters are mounted without retries.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter

from utils.config import NoProxy, ProxyConfig
from utils.errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = "toolsync/1.0 (+https://pypi.org/project/requests/)"

HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
}


class SessionManager:
    """Manages the HTTP session shared by every request of a run."""

    def __init__(self, proxy_config: Optional[ProxyConfig] = None,
                 pool_connections: int = 4, pool_maxsize: int = 4):
        """Initialize session manager.

        Args:
            proxy_config: Proxy settings applied to every request (default: NoProxy)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.proxy_config = proxy_config or NoProxy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the HTTP session.

        Returns:
            requests.Session object
        """
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(HEADERS)
            self._session.proxies.update(self.proxy_config.proxies())

            adapter = HTTPAdapter(
                max_retries=0,
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
            logger.debug("HTTP session created (%s)", self.proxy_config.describe())

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def request_or_raise(session: requests.Session, method: str, url: str,
                     **kwargs) -> requests.Response:
    """Issue one request and return the response, or raise NetworkError.

    Args:
        session: Session to send the request with
        method: HTTP method ("GET", "HEAD")
        url: Target URL
        **kwargs: Passed through to ``session.request`` (timeout, stream, ...)

    Raises:
        NetworkError: On any transport failure or a 4xx/5xx status
    """
    logger.debug("%s %s", method, url)
    try:
        resp = session.request(method, url, **kwargs)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise NetworkError(f"{method} {url} failed: {exc}") from exc
    return resp
