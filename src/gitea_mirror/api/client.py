"""GitHub and Gitea API client implementation."""

from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from loguru import logger

from .. import __version__
from ..config.config import GiteaConfig, GitHubConfig
from .exceptions import ConfigurationError, MirrorAPIError
from .retry import APIResponse, BackoffRetrier

USER_AGENT = f'gitea-mirror/{__version__}'


class APIClient:
    """Blocking JSON API client; every call goes through the backoff retrier."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float],
        retrier: Optional[BackoffRetrier] = None,
    ):
        """Initialize client.

        Args:
            base_url: API root, every endpoint is resolved against it
            timeout: Per-request timeout in seconds (None waits indefinitely)
            retrier: Backoff retrier (a default one is created if omitted)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retrier = retrier or BackoffRetrier()
        self.session = requests.Session()
        self.session.headers.update(
            {'Content-Type': 'application/json', 'User-Agent': USER_AGENT}
        )

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        resend_on_timeout: bool = True,
    ) -> APIResponse:
        """Make an API request with retries.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters
            data: JSON request body
            resend_on_timeout: Retry the request after a read timeout

        Returns:
            API response
        """
        url = self._build_url(endpoint)

        def send() -> requests.Response:
            return self.session.request(
                method, url, params=params, json=data, timeout=self.timeout
            )

        try:
            return self.retrier.execute(
                send, f'{method} {url}', resend_on_timeout=resend_on_timeout
            )
        except requests.RequestException as e:
            logger.error(f'Network error during {method} request: {e}')
            raise MirrorAPIError(f'Network error: {e}')

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> APIResponse:
        """Make GET request."""
        return self.request('GET', endpoint, params=params)

    def post(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        resend_on_timeout: bool = True,
    ) -> APIResponse:
        """Make POST request."""
        return self.request(
            'POST', endpoint, data=data, resend_on_timeout=resend_on_timeout
        )

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.debug(f'Client session for {self.base_url} closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class GitHubClient(APIClient):
    """GitHub REST API client, optionally authenticated with a personal token."""

    def __init__(self, config: GitHubConfig, retrier: Optional[BackoffRetrier] = None):
        """Initialize GitHub client.

        Args:
            config: GitHub configuration
            retrier: Backoff retrier
        """
        super().__init__(config.url, config.timeout, retrier)
        self.config = config
        self.session.headers.update({'Accept': 'application/vnd.github+json'})

        if config.token:
            self.session.auth = (config.username or '', config.token)
            logger.info(f'Initialized GitHub client for {config.url} (authenticated)')
        else:
            logger.info(f'Initialized GitHub client for {config.url} (anonymous)')


class GiteaClient(APIClient):
    """Gitea API client with bearer token authentication."""

    def __init__(self, config: GiteaConfig, retrier: Optional[BackoffRetrier] = None):
        """Initialize Gitea client.

        Args:
            config: Gitea configuration
            retrier: Backoff retrier

        Raises:
            ConfigurationError: If no token is configured
        """
        if not config.token:
            raise ConfigurationError('No Gitea token provided')

        super().__init__(config.url + '/api/v1', config.timeout, retrier)
        self.config = config
        self.session.headers.update({'Authorization': f'Bearer {config.token}'})

        logger.info(f'Initialized Gitea client for {config.url}')
