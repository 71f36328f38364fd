"""
ISV signature verification

This module recomputes the canonical content of a received request and
checks the signature it carries. It is the receiving side of
``isv_auth_sdk.signing`` and is mainly used by services and test doubles
that accept ISV signed requests.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hmac

from ..signing.constants import (
    TENANT_ID_HEADER,
    AUTH_VERSION_HEADER,
    AUTH_TYPE_HEADER,
    SIGNATURE_METHOD_HEADER,
    ACCESS_KEY_ID_HEADER,
    SIGNATURE_HEADER,
    AUTH_VERSION_1_0,
    AUTH_TYPE_ISV,
)
from ..signing.types import OutboundRequest, SigningCredential, SignatureMethod
from ..signing.canonical_message import (
    build_canonical_content,
    build_query_items,
    build_signed_header_items,
)
from ..signing.utils import buffer_body, normalize_header_name

logger = logging.getLogger(__name__)

CredentialLookup = Callable[[str], Optional[SigningCredential]]


class VerificationErrorCodes:
    """Reasons a request fails verification"""
    MISSING_HEADER = "MISSING_HEADER"
    UNSUPPORTED_AUTH_VERSION = "UNSUPPORTED_AUTH_VERSION"
    UNSUPPORTED_AUTH_TYPE = "UNSUPPORTED_AUTH_TYPE"
    UNSUPPORTED_SIGNATURE_METHOD = "UNSUPPORTED_SIGNATURE_METHOD"
    UNKNOWN_ACCESS_KEY = "UNKNOWN_ACCESS_KEY"
    MALFORMED_SIGNATURE = "MALFORMED_SIGNATURE"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"


@dataclass
class VerificationResult:
    """
    Outcome of verifying one request

    Attributes:
        valid: True when the signature matches
        access_key_id: Access key the request claimed, if any
        error_code: One of VerificationErrorCodes when invalid
        message: Human readable reason
    """
    valid: bool
    access_key_id: Optional[str] = None
    error_code: Optional[str] = None
    message: str = ""


REQUIRED_HEADERS = (
    AUTH_VERSION_HEADER,
    AUTH_TYPE_HEADER,
    SIGNATURE_METHOD_HEADER,
    ACCESS_KEY_ID_HEADER,
    SIGNATURE_HEADER,
)


class IsvSignatureVerifier:
    """
    Verifier for ISV signed requests.

    Like the signer it keeps no per-request state; the credential lookup is
    the only collaborator.
    """

    def __init__(
        self,
        credential_lookup: CredentialLookup,
        tenant_header: str = TENANT_ID_HEADER
    ):
        """
        Initialize the verifier.

        Args:
            credential_lookup: Returns the credential for an access key id, or None
            tenant_header: Header name carrying the tenant identifier
        """
        self.credential_lookup = credential_lookup
        self.tenant_header = normalize_header_name(tenant_header)

    def verify(self, request: OutboundRequest) -> VerificationResult:
        """
        Verify the signature carried by a request.

        Args:
            request: Received request, authentication headers included

        Returns:
            VerificationResult: Never raises for a bad signature
        """
        headers = request.headers

        for name in REQUIRED_HEADERS:
            if name not in headers:
                return self._failure(
                    VerificationErrorCodes.MISSING_HEADER,
                    f"Missing header: {name}",
                    headers.get(ACCESS_KEY_ID_HEADER)
                )

        access_key_id = headers[ACCESS_KEY_ID_HEADER]

        if headers[AUTH_VERSION_HEADER] != AUTH_VERSION_1_0:
            return self._failure(
                VerificationErrorCodes.UNSUPPORTED_AUTH_VERSION,
                f"Unsupported auth version: {headers[AUTH_VERSION_HEADER]}",
                access_key_id
            )

        if headers[AUTH_TYPE_HEADER] != AUTH_TYPE_ISV:
            return self._failure(
                VerificationErrorCodes.UNSUPPORTED_AUTH_TYPE,
                f"Unsupported auth type: {headers[AUTH_TYPE_HEADER]}",
                access_key_id
            )

        try:
            signature_method = SignatureMethod(headers[SIGNATURE_METHOD_HEADER])
        except ValueError:
            return self._failure(
                VerificationErrorCodes.UNSUPPORTED_SIGNATURE_METHOD,
                f"Unsupported signature method: {headers[SIGNATURE_METHOD_HEADER]}",
                access_key_id
            )

        credential = self.credential_lookup(access_key_id)
        if credential is None:
            return self._failure(
                VerificationErrorCodes.UNKNOWN_ACCESS_KEY,
                f"Unknown access key ID: {access_key_id}",
                access_key_id
            )

        try:
            expected = base64.b64decode(headers[SIGNATURE_HEADER], validate=True)
        except (binascii.Error, ValueError):
            return self._failure(
                VerificationErrorCodes.MALFORMED_SIGNATURE,
                "Signature is not valid base64",
                access_key_id
            )

        header_items = build_signed_header_items(
            credential, headers, signature_method, self.tenant_header
        )
        canonical = build_canonical_content(
            request.path,
            header_items,
            build_query_items(request.query),
            buffer_body(request.body)
        )

        h = hmac.HMAC(credential.secret_key, signature_method.hash_algorithm())
        h.update(canonical.to_bytes())
        try:
            h.verify(expected)
        except InvalidSignature:
            return self._failure(
                VerificationErrorCodes.SIGNATURE_MISMATCH,
                "Signature does not match request content",
                access_key_id
            )

        logger.debug(f"Verified request to {request.path} for key ID {access_key_id}")
        return VerificationResult(valid=True, access_key_id=access_key_id)

    def _failure(self, code: str, message: str, access_key_id: Optional[str]) -> VerificationResult:
        logger.info(f"Signature verification failed ({code}): {message}")
        return VerificationResult(
            valid=False,
            access_key_id=access_key_id,
            error_code=code,
            message=message
        )


def verify_request(
    request: OutboundRequest,
    credential: SigningCredential,
    tenant_header: str = TENANT_ID_HEADER
) -> VerificationResult:
    """
    Verify a request against a single known credential.

    Args:
        request: Received request
        credential: Credential the request is expected to be signed with
        tenant_header: Header name carrying the tenant identifier

    Returns:
        VerificationResult: Verification outcome
    """
    def lookup(access_key_id: str) -> Optional[SigningCredential]:
        if access_key_id == credential.access_key_id:
            return credential
        return None

    return IsvSignatureVerifier(lookup, tenant_header).verify(request)
