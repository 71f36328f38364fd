"""
ISV request signer

This module provides the signer that authenticates outbound API calls. It
canonicalizes a request (path, signed headers, query parameters and body),
computes an HMAC over that content with the credential's secret key and
injects the resulting authentication headers into the request.
"""

import logging
from typing import List, Mapping, Optional, Union

from cryptography.hazmat.primitives import hmac

from .constants import TENANT_ID_HEADER
from .types import (
    OutboundRequest,
    SigningCredential,
    SignatureHeaderSet,
    SignatureMethod,
    SigningError,
    SigningErrorCodes,
    RequestBody,
)
from .utils import (
    buffer_body,
    encode_base64,
    normalize_header_name,
)
from .canonical_message import (
    CanonicalContent,
    build_canonical_content,
    build_query_items,
    build_signed_header_items,
)

logger = logging.getLogger(__name__)


def compute_hmac(
    secret_key: bytes,
    content: bytes,
    signature_method: SignatureMethod = SignatureMethod.SHA256_HMAC
) -> bytes:
    """
    Compute the raw HMAC of content.

    Args:
        secret_key: HMAC key
        content: Canonical content
        signature_method: Hash variant

    Returns:
        bytes: Raw HMAC output
    """
    h = hmac.HMAC(secret_key, signature_method.hash_algorithm())
    h.update(content)
    return h.finalize()


class IsvSigner:
    """
    HMAC request signer for ISV authentication

    The signer holds only an immutable credential and its options, so one
    instance can sign independent requests from several threads at once.
    Each request must be signed exactly once, right before it is sent.
    """

    def __init__(
        self,
        credential: SigningCredential,
        signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC,
        tenant_header: str = TENANT_ID_HEADER,
        log_canonical_content: bool = False
    ):
        """
        Initialize the signer.

        Args:
            credential: Access key id and secret key
            signature_method: Keyed hash variant to use
            tenant_header: Header name carrying the tenant identifier
            log_canonical_content: Log the canonical content at DEBUG level

        Raises:
            SigningError: If the configuration is invalid
        """
        if not isinstance(credential, SigningCredential):
            raise SigningError(
                "Credential must be a SigningCredential instance",
                SigningErrorCodes.INVALID_CREDENTIAL,
                {"credential_type": type(credential).__name__}
            )

        try:
            signature_method = SignatureMethod(signature_method)
        except ValueError:
            raise SigningError(
                f"Unsupported signature method: {signature_method}",
                SigningErrorCodes.INVALID_CONFIG,
                {"supported": [m.value for m in SignatureMethod]}
            )

        if not tenant_header or not tenant_header.strip():
            raise SigningError(
                "Tenant header name cannot be empty",
                SigningErrorCodes.INVALID_CONFIG
            )

        self._credential = credential
        self.signature_method = signature_method
        self.tenant_header = normalize_header_name(tenant_header)
        self.log_canonical_content = log_canonical_content

    @property
    def access_key_id(self) -> str:
        return self._credential.access_key_id

    def compute_signature(self, content: bytes) -> str:
        """
        Sign canonical content.

        Args:
            content: Canonical content bytes

        Returns:
            str: Padded base64 of the HMAC
        """
        return encode_base64(
            compute_hmac(self._credential.secret_key, content, self.signature_method)
        )

    def canonicalize(self, request: OutboundRequest) -> CanonicalContent:
        """
        Build the canonical content of a request.

        The body is buffered once and written back to ``request.body`` so the
        bytes that are hashed are the bytes that get transmitted.

        Args:
            request: Request about to be sent

        Returns:
            CanonicalContent: Content to be hashed

        Raises:
            SigningError: If the request is malformed
            OSError: If the body stream fails while buffering
        """
        if not isinstance(request, OutboundRequest):
            raise SigningError(
                "Request must be an OutboundRequest instance",
                SigningErrorCodes.INVALID_REQUEST,
                {"request_type": type(request).__name__}
            )

        body = buffer_body(request.body)
        request.body = body

        header_items = build_signed_header_items(
            self._credential,
            request.headers,
            self.signature_method,
            self.tenant_header
        )
        query_items = build_query_items(request.query)

        return build_canonical_content(request.path, header_items, query_items, body)

    def sign_headers(self, request: OutboundRequest) -> SignatureHeaderSet:
        """
        Compute the authentication headers for a request without injecting
        them.

        Args:
            request: Request about to be sent

        Returns:
            SignatureHeaderSet: Headers to inject

        Raises:
            SigningError: If the request is malformed or already signed
            OSError: If the body stream fails while buffering
        """
        if isinstance(request, OutboundRequest) and request.is_signed():
            raise SigningError(
                "Request already carries a signature",
                SigningErrorCodes.ALREADY_SIGNED,
                {"path": request.path}
            )

        canonical = self.canonicalize(request)
        signature = self.compute_signature(canonical.to_bytes())

        logger.debug(
            f"Signed {request.method} {request.path} with {self.signature_method.value} "
            f"for key ID {self.access_key_id}, sections: {canonical.describe()}"
        )
        if self.log_canonical_content:
            logger.debug(f"Canonical content: {canonical.to_bytes()!r}")

        tenant_id = dict(canonical.header_items).get(self.tenant_header)
        return SignatureHeaderSet(
            access_key_id=self.access_key_id,
            signature_method=self.signature_method,
            signature=signature,
            tenant_id=tenant_id,
            tenant_header=self.tenant_header,
        )

    def sign(self, request: OutboundRequest) -> OutboundRequest:
        """
        Sign a request and inject the authentication headers.

        Method, path, query and body bytes are left untouched. If anything
        fails no header is written.

        Args:
            request: Request about to be sent

        Returns:
            OutboundRequest: The same request object, with headers added

        Raises:
            SigningError: If the request is malformed or already signed
            OSError: If the body stream fails while buffering
        """
        header_set = self.sign_headers(request)
        request.headers.update(header_set.as_dict())
        return request

    def __repr__(self) -> str:
        return (
            f"IsvSigner(access_key_id='{self.access_key_id}', "
            f"signature_method={self.signature_method.value}, tenant_header='{self.tenant_header}')"
        )


def create_signer(
    credential: SigningCredential,
    signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC,
    tenant_header: str = TENANT_ID_HEADER,
    log_canonical_content: bool = False
) -> IsvSigner:
    """
    Create a new ISV signer.

    Args:
        credential: Signing credential
        signature_method: Keyed hash variant
        tenant_header: Header name carrying the tenant identifier
        log_canonical_content: Log canonical content at DEBUG level

    Returns:
        IsvSigner: Configured signer instance
    """
    return IsvSigner(credential, signature_method, tenant_header, log_canonical_content)


def sign_request(
    request: OutboundRequest,
    credential: SigningCredential,
    signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC,
    tenant_header: str = TENANT_ID_HEADER
) -> OutboundRequest:
    """
    Sign a request with the given credential.

    Args:
        request: Request to sign
        credential: Signing credential
        signature_method: Keyed hash variant
        tenant_header: Header name carrying the tenant identifier

    Returns:
        OutboundRequest: The request with authentication headers added
    """
    signer = create_signer(credential, signature_method, tenant_header)
    return signer.sign(request)


def calculate_signature(
    secret_key: Union[str, bytes],
    path: str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, Union[str, List[str]]]] = None,
    body: RequestBody = None,
    signature_method: Union[SignatureMethod, str] = SignatureMethod.SHA256_HMAC
) -> str:
    """
    Compute a signature from explicitly assembled parts.

    Unlike ``IsvSigner.sign`` every header given here is signed, so the
    caller passes exactly the authentication headers (and tenant header)
    that will be sent. Useful for tooling and for checking another
    implementation's output.

    Args:
        secret_key: HMAC key
        path: Encoded request path
        headers: Headers to sign
        params: Query parameters, a value or a list of values per name
        body: Request body
        signature_method: Keyed hash variant

    Returns:
        str: Padded base64 signature
    """
    if isinstance(secret_key, str):
        secret_key = secret_key.encode('utf-8')

    header_items = tuple(sorted((headers or {}).items()))

    query = []
    for name, value in (params or {}).items():
        values = value if isinstance(value, (list, tuple)) else [value]
        query.extend((name, "" if v is None else str(v)) for v in values)

    canonical = build_canonical_content(
        path,
        header_items,
        build_query_items(query),
        buffer_body(body)
    )
    return encode_base64(
        compute_hmac(secret_key, canonical.to_bytes(), SignatureMethod(signature_method))
    )
