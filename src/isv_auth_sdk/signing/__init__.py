"""
ISV Auth Python SDK - Request Signing Module

HMAC request signing for ISV authenticated APIs. The signer canonicalizes an
outbound request (path, authentication headers, query parameters and body),
computes a keyed hash over it and injects the authentication headers a
receiving service needs to verify the request.
"""

from .constants import (
    TENANT_ID_HEADER,
    TRACE_ID_HEADER,
    AUTH_VERSION_HEADER,
    AUTH_TYPE_HEADER,
    SIGNATURE_METHOD_HEADER,
    ACCESS_KEY_ID_HEADER,
    SIGNATURE_HEADER,
    AUTH_VERSION_1_0,
    AUTH_TYPE_ISV,
)

from .types import (
    SigningCredential,
    OutboundRequest,
    SignatureHeaderSet,
    SignatureMethod,
    SigningError,
    SigningErrorCodes,
)

from .canonical_message import (
    CanonicalContent,
    build_signed_header_items,
    build_query_items,
    connect_param_items,
    build_canonical_content,
)

from .isv_signer import (
    IsvSigner,
    create_signer,
    sign_request,
    calculate_signature,
    compute_hmac,
)

from .utils import (
    buffer_body,
    split_url,
    normalize_header_name,
    is_blank,
    encode_base64,
    generate_trace_id,
)

from .integration import (
    IsvAuth,
    SigningSession,
    create_signing_session,
    sign_prepared_request,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'IsvSigner',
    'create_signer',
    'sign_request',
    'calculate_signature',
    'compute_hmac',
    # Types
    'SigningCredential',
    'OutboundRequest',
    'SignatureHeaderSet',
    'SignatureMethod',
    'SigningError',
    'SigningErrorCodes',
    # Canonicalization
    'CanonicalContent',
    'build_signed_header_items',
    'build_query_items',
    'connect_param_items',
    'build_canonical_content',
    # Wire constants
    'TENANT_ID_HEADER',
    'TRACE_ID_HEADER',
    'AUTH_VERSION_HEADER',
    'AUTH_TYPE_HEADER',
    'SIGNATURE_METHOD_HEADER',
    'ACCESS_KEY_ID_HEADER',
    'SIGNATURE_HEADER',
    'AUTH_VERSION_1_0',
    'AUTH_TYPE_ISV',
    # Utilities
    'buffer_body',
    'split_url',
    'normalize_header_name',
    'is_blank',
    'encode_base64',
    'generate_trace_id',
    # HTTP Integration
    'IsvAuth',
    'SigningSession',
    'create_signing_session',
    'sign_prepared_request',
]
