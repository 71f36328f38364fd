"""
ISV Auth Python SDK
HMAC request signing for ISV authenticated APIs
"""

from .version import __version__
from .exceptions import (
    IsvSDKError,
    ValidationError,
    ConfigError,
    ServerCommunicationError,
)
from .signing import (
    # Core signing functionality
    IsvSigner,
    create_signer,
    sign_request,
    calculate_signature,
    # Types
    SigningCredential,
    OutboundRequest,
    SignatureHeaderSet,
    SignatureMethod,
    SigningError,
    SigningErrorCodes,
    CanonicalContent,
    # HTTP Integration
    IsvAuth,
    SigningSession,
    create_signing_session,
    sign_prepared_request,
)
from .verification import (
    IsvSignatureVerifier,
    VerificationResult,
    verify_request,
)
from .config import (
    IsvClientConfig,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)
from .http_client import (
    IsvHttpClient,
    ServerConfig,
    create_client,
)

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'IsvSDKError',
    'ValidationError',
    'ConfigError',
    'ServerCommunicationError',
    # Request Signing - Core
    'IsvSigner',
    'create_signer',
    'sign_request',
    'calculate_signature',
    # Request Signing - Types
    'SigningCredential',
    'OutboundRequest',
    'SignatureHeaderSet',
    'SignatureMethod',
    'SigningError',
    'SigningErrorCodes',
    'CanonicalContent',
    # Request Signing - HTTP Integration
    'IsvAuth',
    'SigningSession',
    'create_signing_session',
    'sign_prepared_request',
    # Verification
    'IsvSignatureVerifier',
    'VerificationResult',
    'verify_request',
    # Configuration
    'IsvClientConfig',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    # HTTP Client
    'IsvHttpClient',
    'ServerConfig',
    'create_client',
]
