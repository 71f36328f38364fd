"""
HTTP client for ISV authenticated APIs

This module provides a small ``requests`` based client that signs every
outbound call and returns the raw responses.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config.client_config import IsvClientConfig
from .exceptions import ServerCommunicationError, ValidationError
from .signing.types import SigningCredential, SignatureMethod
from .signing.isv_signer import IsvSigner
from .signing.integration import IsvAuth
from .signing.constants import TENANT_ID_HEADER
from .version import __version__

logger = logging.getLogger(__name__)

QueryParamsArg = Union[Mapping[str, Any], Sequence[Tuple[str, Any]], None]


@dataclass
class ServerConfig:
    """Configuration for the API server connection."""
    base_url: str
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3

    def __post_init__(self):
        """Validate server configuration."""
        if not self.base_url:
            raise ValidationError("Server base_url cannot be empty")

        # Ensure base_url ends with /
        if not self.base_url.endswith('/'):
            self.base_url += '/'

        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid server URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


class IsvHttpClient:
    """
    HTTP client that signs every request with ISV authentication.

    Signing errors and body read faults are raised as they are; transport
    failures are wrapped in ServerCommunicationError.
    """

    def __init__(
        self,
        config: ServerConfig,
        credential: Union[SigningCredential, IsvSigner],
        tenant_id: Optional[str] = None,
        tenant_header: str = TENANT_ID_HEADER,
        signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC,
        send_trace_id: bool = False,
        log_canonical_content: bool = False
    ):
        """
        Initialize the HTTP client.

        Args:
            config: Server configuration settings
            credential: Credential or configured signer
            tenant_id: Default tenant id sent with every request
            tenant_header: Header name carrying the tenant id
            signature_method: Keyed hash variant
            send_trace_id: Add a random trace id header when absent
            log_canonical_content: Log canonical content at DEBUG level
        """
        self.config = config
        self.auth = IsvAuth(
            credential,
            tenant_id=tenant_id,
            tenant_header=tenant_header,
            signature_method=signature_method,
            send_trace_id=send_trace_id,
            log_canonical_content=log_canonical_content
        )
        self.session = self._create_session()

        logger.info(
            f"Initialized ISV HTTP client for server: {config.base_url} "
            f"(key ID: {self.auth.signer.access_key_id})"
        )

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry logic and signing."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.config.retry_attempts,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "PUT", "DELETE", "OPTIONS", "TRACE"],
            backoff_factor=self.config.retry_backoff_factor,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': f'ISV-Auth-Python-SDK/{__version__}'
        })
        session.auth = self.auth

        return session

    def build_url(self, path: str) -> str:
        """Resolve an endpoint path against the base URL."""
        return urljoin(self.config.base_url, path.lstrip('/'))

    def request(
        self,
        method: str,
        path: str,
        params: QueryParamsArg = None,
        json: Any = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> requests.Response:
        """
        Make a signed HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Endpoint path relative to the base URL
            params: Query parameters; lists become repeated parameters
            json: JSON body
            data: Raw body (bytes, str, stream)
            headers: Extra request headers
            **kwargs: Additional arguments for requests; redirects are
                not followed unless ``allow_redirects=True`` is passed

        Returns:
            requests.Response: Raw HTTP response

        Raises:
            ServerCommunicationError: On network errors
            SigningError: If the request cannot be signed
        """
        url = self.build_url(path)

        kwargs.setdefault('timeout', self.config.timeout)
        kwargs.setdefault('verify', self.config.verify_ssl)
        kwargs.setdefault('allow_redirects', False)

        try:
            logger.debug(f"Making {method} request to {url}")
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=headers,
                **kwargs
            )
        except requests.exceptions.Timeout:
            raise ServerCommunicationError(f"Request timeout after {self.config.timeout} seconds")
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}")

    def get(self, path: str, params: QueryParamsArg = None, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', path, params=params, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', path, json=json, **kwargs)

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()
        logger.debug("ISV HTTP client closed")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_client(config: IsvClientConfig) -> IsvHttpClient:
    """
    Create an HTTP client from client configuration.

    Args:
        config: Loaded client configuration

    Returns:
        IsvHttpClient: Configured client
    """
    return IsvHttpClient(
        config.to_server_config(),
        config.to_signer(),
        tenant_id=config.tenant_id,
        send_trace_id=config.send_trace_id
    )
