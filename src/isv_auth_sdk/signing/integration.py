"""
HTTP client integration for request signing

This module wires the ISV signer into the ``requests`` pipeline. Signing is
an explicit ``requests.auth.AuthBase`` hook that runs exactly once on each
prepared request, right before it is handed to the transport adapter.
Redirects are not followed by default: a redirected request would carry a
signature computed for the original URL.
"""

import logging
from typing import Mapping, Optional, Union

import requests
from requests.auth import AuthBase
from requests.models import PreparedRequest

from .constants import TENANT_ID_HEADER, TRACE_ID_HEADER
from .types import (
    OutboundRequest,
    SigningCredential,
    SignatureMethod,
    SigningError,
    SigningErrorCodes,
)
from .isv_signer import IsvSigner
from .utils import buffer_body, generate_trace_id, is_blank, split_url

logger = logging.getLogger(__name__)


def sign_prepared_request(
    prepared_request: PreparedRequest,
    signer: IsvSigner,
    extra_headers: Optional[Mapping[str, str]] = None
) -> PreparedRequest:
    """
    Sign a prepared request in place.

    The body is buffered once; the buffered bytes replace ``prepared_request.body``
    so a one-shot stream is never read twice. A streaming request is turned
    into a fixed-length one. Nothing on the request changes unless signing
    succeeds.

    Args:
        prepared_request: Prepared request to sign
        signer: Signer to use
        extra_headers: Headers to add together with the authentication headers

    Returns:
        PreparedRequest: The same request with authentication headers added

    Raises:
        SigningError: If the URL is missing or the request is already signed
        OSError: If the body stream fails while buffering
    """
    if not prepared_request.url:
        raise SigningError(
            "Prepared request has no URL",
            SigningErrorCodes.INVALID_URL
        )

    path, query = split_url(prepared_request.url)

    body = buffer_body(prepared_request.body)

    headers = prepared_request.headers.copy()
    headers.update(extra_headers or {})

    request = OutboundRequest(
        method=prepared_request.method or "GET",
        path=path,
        query=query,
        headers=headers,
        body=body
    )

    header_set = signer.sign_headers(request)

    if prepared_request.body is not None and not isinstance(prepared_request.body, bytes):
        prepared_request.body = body
        prepared_request.headers.pop('Transfer-Encoding', None)
        prepared_request.headers['Content-Length'] = str(len(body))

    prepared_request.headers.update(extra_headers or {})
    prepared_request.headers.update(header_set.as_dict())
    return prepared_request


class IsvAuth(AuthBase):
    """
    ``requests`` authentication hook that signs each outgoing request.

    Usage:
        session.auth = IsvAuth(credential, tenant_id="tenant-1")
    """

    def __init__(
        self,
        credential: Union[SigningCredential, IsvSigner],
        tenant_id: Optional[str] = None,
        tenant_header: str = TENANT_ID_HEADER,
        signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC,
        send_trace_id: bool = False,
        log_canonical_content: bool = False
    ):
        """
        Initialize the signing hook.

        Args:
            credential: Credential, or an already configured signer
            tenant_id: Default tenant id set on requests that do not carry one
            tenant_header: Header name carrying the tenant identifier
            signature_method: Keyed hash variant
            send_trace_id: Add a random trace id header when absent
            log_canonical_content: Log canonical content at DEBUG level
        """
        if isinstance(credential, IsvSigner):
            self.signer = credential
        else:
            self.signer = IsvSigner(
                credential,
                signature_method=signature_method,
                tenant_header=tenant_header,
                log_canonical_content=log_canonical_content
            )
        self.tenant_id = tenant_id
        self.send_trace_id = send_trace_id

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        extra_headers = {}

        tenant_header = self.signer.tenant_header
        if not is_blank(self.tenant_id) and is_blank(request.headers.get(tenant_header)):
            extra_headers[tenant_header] = self.tenant_id

        if self.send_trace_id and TRACE_ID_HEADER not in request.headers:
            extra_headers[TRACE_ID_HEADER] = generate_trace_id()

        return sign_prepared_request(request, self.signer, extra_headers)

    def __eq__(self, other):
        return (
            isinstance(other, IsvAuth)
            and self.signer.access_key_id == other.signer.access_key_id
            and self.tenant_id == other.tenant_id
        )


class SigningSession:
    """
    HTTP session wrapper with automatic request signing.

    This class wraps a ``requests.Session`` and installs ``IsvAuth`` on it.
    Signing failures are raised to the caller; an unsigned request is never
    sent.
    """

    def __init__(
        self,
        credential: Union[SigningCredential, IsvSigner],
        session: Optional[requests.Session] = None,
        tenant_id: Optional[str] = None,
        **auth_options
    ):
        """
        Initialize signing session.

        Args:
            credential: Credential or configured signer
            session: Optional existing requests session to wrap
            tenant_id: Default tenant id
            **auth_options: Further ``IsvAuth`` options
        """
        self.session = session or requests.Session()
        self.auth = IsvAuth(credential, tenant_id=tenant_id, **auth_options)
        self.session.auth = self.auth
        logger.info(f"Configured request signing for key ID: {self.auth.signer.access_key_id}")

    def prepare(self, method: str, url: str, **kwargs) -> PreparedRequest:
        """
        Build and sign a request without sending it.

        The returned request is final; send it with ``session.send`` as is,
        do not sign it again.
        """
        return self.session.prepare_request(requests.Request(method, url, **kwargs))

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make a signed HTTP request.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional arguments for requests; redirects are
                not followed unless ``allow_redirects=True`` is passed

        Returns:
            requests.Response: HTTP response
        """
        kwargs.setdefault('allow_redirects', False)
        logger.debug(f"Sending signed {method} request to {url}")
        return self.session.request(method, url, **kwargs)

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        """Make PUT request."""
        return self.request('PUT', url, **kwargs)

    def delete(self, url: str, **kwargs) -> requests.Response:
        """Make DELETE request."""
        return self.request('DELETE', url, **kwargs)

    def patch(self, url: str, **kwargs) -> requests.Response:
        """Make PATCH request."""
        return self.request('PATCH', url, **kwargs)

    def head(self, url: str, **kwargs) -> requests.Response:
        """Make HEAD request."""
        return self.request('HEAD', url, **kwargs)

    def options(self, url: str, **kwargs) -> requests.Response:
        """Make OPTIONS request."""
        return self.request('OPTIONS', url, **kwargs)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_signing_session(
    credential: Union[SigningCredential, IsvSigner],
    tenant_id: Optional[str] = None,
    **auth_options
) -> SigningSession:
    """
    Create a new signing session.

    Args:
        credential: Credential or configured signer
        tenant_id: Default tenant id
        **auth_options: Further ``IsvAuth`` options

    Returns:
        SigningSession: Session that signs every request
    """
    return SigningSession(credential, tenant_id=tenant_id, **auth_options)
