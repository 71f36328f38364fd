"""
ISV Auth Python SDK - Signature Verification Module

Receiving-side recomputation of ISV request signatures.
"""

from .verifier import (
    IsvSignatureVerifier,
    VerificationResult,
    VerificationErrorCodes,
    CredentialLookup,
    verify_request,
)

__all__ = [
    'IsvSignatureVerifier',
    'VerificationResult',
    'VerificationErrorCodes',
    'CredentialLookup',
    'verify_request',
]
