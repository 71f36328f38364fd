"""
Type definitions for request signing functionality

This module provides the data classes shared by the signer, the HTTP
integration and the verifier: the signing credential, the outbound request
being signed and the header set injected into it.
"""

from typing import Dict, List, Optional, Tuple, Union, Iterable, Any, IO
from dataclasses import dataclass, field
from enum import Enum

from cryptography.hazmat.primitives import hashes
from requests.structures import CaseInsensitiveDict

from ..exceptions import ValidationError
from .constants import (
    TENANT_ID_HEADER,
    AUTH_VERSION_HEADER,
    AUTH_TYPE_HEADER,
    SIGNATURE_METHOD_HEADER,
    ACCESS_KEY_ID_HEADER,
    SIGNATURE_HEADER,
    AUTH_VERSION_1_0,
    AUTH_TYPE_ISV,
)


class SignatureMethod(str, Enum):
    """Keyed hash variants, by their wire name"""
    SHA256_HMAC = "SHA256_HMAC"
    SHA512_HMAC = "SHA512_HMAC"

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Return a fresh hash algorithm instance for HMAC computation."""
        if self is SignatureMethod.SHA512_HMAC:
            return hashes.SHA512()
        return hashes.SHA256()


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_URL = "INVALID_URL"
    UNSUPPORTED_BODY = "UNSUPPORTED_BODY"
    ALREADY_SIGNED = "ALREADY_SIGNED"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"


@dataclass(frozen=True)
class SigningCredential:
    """
    Access key identifier and secret key used to sign requests

    Attributes:
        access_key_id: Public identifier sent with every request
        secret_key: HMAC key; a str is UTF-8 encoded
    """
    access_key_id: str
    secret_key: bytes = field(repr=False)

    def __post_init__(self):
        """Validate and normalize the credential"""
        if not isinstance(self.access_key_id, str) or not self.access_key_id:
            raise ValidationError("Access key ID cannot be empty", "INVALID_CREDENTIAL")

        secret = self.secret_key
        if isinstance(secret, str):
            secret = secret.encode('utf-8')
        elif isinstance(secret, (bytearray, memoryview)):
            secret = bytes(secret)

        if not isinstance(secret, bytes):
            raise ValidationError("Secret key must be str or bytes", "INVALID_CREDENTIAL")

        if not secret:
            raise ValidationError("Secret key cannot be empty", "INVALID_CREDENTIAL")

        # frozen dataclass
        object.__setattr__(self, 'secret_key', secret)


RequestBody = Union[bytes, bytearray, memoryview, str, IO[bytes], Iterable[bytes], None]
QueryParams = List[Tuple[str, str]]


@dataclass
class OutboundRequest:
    """
    Request to be signed

    Attributes:
        method: HTTP method; carried along but not part of the signed content
        path: Raw, already percent-encoded URL path
        query: Ordered, multi-valued query parameters as (name, value) pairs
        headers: Case-insensitive header mapping, one value per name
        body: Optional request body
    """
    method: str
    path: str
    query: QueryParams = field(default_factory=list)
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: RequestBody = None

    def __post_init__(self):
        """Validate request after initialization"""
        if not isinstance(self.path, str) or not self.path:
            raise SigningError(
                "Request path cannot be empty",
                SigningErrorCodes.INVALID_URL,
                {"path": self.path}
            )

        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

        self.query = [
            (str(name), "" if value is None else str(value))
            for name, value in (self.query or [])
        ]

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: RequestBody = None
    ) -> 'OutboundRequest':
        """
        Build a request from a complete URL.

        Args:
            method: HTTP method
            url: Absolute URL including any query string
            headers: Optional request headers
            body: Optional request body

        Returns:
            OutboundRequest: Request with path and query split out

        Raises:
            SigningError: If the URL is missing or cannot be parsed
        """
        from .utils import split_url

        path, query = split_url(url)
        return cls(
            method=method.upper(),
            path=path,
            query=query,
            headers=CaseInsensitiveDict(headers or {}),
            body=body
        )

    def is_signed(self) -> bool:
        """Check whether a signature header is already present."""
        return SIGNATURE_HEADER in self.headers


@dataclass(frozen=True)
class SignatureHeaderSet:
    """
    Authentication headers produced for a single request

    Attributes:
        access_key_id: Value of the access-key-id header
        signature_method: Value of the signature-method header
        signature: Base64 keyed hash of the canonical content
        tenant_id: Caller supplied tenant identifier, if any
        tenant_header: Header name the tenant identifier travels under
        auth_version: Value of the auth-version header
        auth_type: Value of the auth-type header
    """
    access_key_id: str
    signature_method: SignatureMethod
    signature: str
    tenant_id: Optional[str] = None
    tenant_header: str = TENANT_ID_HEADER
    auth_version: str = AUTH_VERSION_1_0
    auth_type: str = AUTH_TYPE_ISV

    def as_dict(self) -> Dict[str, str]:
        """
        Return the headers to inject, signed headers in key order and the
        signature last.
        """
        headers = {
            AUTH_TYPE_HEADER: self.auth_type,
            AUTH_VERSION_HEADER: self.auth_version,
            ACCESS_KEY_ID_HEADER: self.access_key_id,
            SIGNATURE_METHOD_HEADER: self.signature_method.value,
        }
        if self.tenant_id is not None:
            headers[self.tenant_header] = self.tenant_id

        ordered = {name: headers[name] for name in sorted(headers)}
        ordered[SIGNATURE_HEADER] = self.signature
        return ordered


# Type aliases for convenience
HeaderItems = Tuple[Tuple[str, str], ...]
