"""
Client configuration for the ISV Auth Python SDK

Loads the endpoint, credential and signing options from a dictionary, a JSON
document, a JSON file or environment variables.
"""

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import ConfigError, ValidationError
from ..signing.constants import TENANT_ID_HEADER
from ..signing.types import SigningCredential, SignatureMethod
from ..signing.isv_signer import IsvSigner

ENV_PREFIX = "ISV_"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass
class IsvClientConfig:
    """
    Endpoint, credential and signing options for one ISV API

    Attributes:
        rest_url: Base URL of the API
        access_key_id: Public access key identifier
        secret_key: Secret signing key
        tenant_id: Default tenant id sent with every request
        tenant_header: Header name carrying the tenant id
        signature_method: Keyed hash variant
        timeout: Request timeout in seconds
        verify_ssl: Verify TLS certificates
        retry_attempts: Transport retries for idempotent failures
        send_trace_id: Add a random x-trace-id header when absent
        log_canonical_content: Log canonical content at DEBUG level
        log_level: Logging level name for the CLI
    """
    rest_url: str
    access_key_id: str
    secret_key: str
    tenant_id: Optional[str] = None
    tenant_header: str = TENANT_ID_HEADER
    signature_method: str = SignatureMethod.SHA256_HMAC.value
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    send_trace_id: bool = False
    log_canonical_content: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate configuration values"""
        for name in ('rest_url', 'access_key_id', 'secret_key'):
            if not getattr(self, name):
                raise ConfigError(f"Configuration value '{name}' is required", "MISSING_VALUE")

        try:
            self.signature_method = SignatureMethod(self.signature_method).value
        except ValueError:
            raise ConfigError(
                f"Unsupported signature method: {self.signature_method}",
                "INVALID_VALUE",
                {"supported": [m.value for m in SignatureMethod]}
            )

        if self.timeout <= 0:
            raise ConfigError("Timeout must be positive", "INVALID_VALUE")

        if self.retry_attempts < 0:
            raise ConfigError("Retry attempts must be non-negative", "INVALID_VALUE")

        if not self.tenant_header:
            raise ConfigError("Tenant header name cannot be empty", "INVALID_VALUE")

    def __repr__(self) -> str:
        return (
            f"IsvClientConfig(rest_url='{self.rest_url}', access_key_id='{self.access_key_id}', "
            f"secret_key='***', tenant_id={self.tenant_id!r}, "
            f"signature_method='{self.signature_method}')"
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'IsvClientConfig':
        """Build configuration from a mapping, ignoring unknown keys"""
        if not isinstance(data, Mapping):
            raise ConfigError("Configuration must be a JSON object", "INVALID_FORMAT")

        known = {f.name for f in fields(cls)}
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")

    @classmethod
    def from_json(cls, json_string: str) -> 'IsvClientConfig':
        """Load configuration from JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'IsvClientConfig':
        """Load configuration from a JSON file"""
        try:
            with open(Path(file_path), 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")
        return cls.from_json(json_string)

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'IsvClientConfig':
        """
        Load configuration from environment variables.

        Every field maps to ``<prefix><FIELD_NAME>``, for example
        ``ISV_ACCESS_KEY_ID``.
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            data[f.name] = _coerce(f.name, raw, f.type)

        return cls.from_dict(data)

    def to_credential(self) -> SigningCredential:
        """Build the signing credential"""
        try:
            return SigningCredential(self.access_key_id, self.secret_key)
        except ValidationError as e:
            raise ConfigError(f"Invalid credential: {e}", "INVALID_VALUE")

    def to_server_config(self):
        """Build the HTTP server settings"""
        from ..http_client import ServerConfig

        try:
            return ServerConfig(
                base_url=self.rest_url,
                timeout=self.timeout,
                verify_ssl=self.verify_ssl,
                retry_attempts=self.retry_attempts
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid server settings: {e}", "INVALID_VALUE")

    def to_signer(self) -> IsvSigner:
        """Build a signer from this configuration"""
        return IsvSigner(
            self.to_credential(),
            signature_method=self.signature_method,
            tenant_header=self.tenant_header,
            log_canonical_content=self.log_canonical_content
        )


def _coerce(name: str, raw: str, field_type: Any) -> Any:
    """Convert an environment string to the field's type"""
    if field_type is bool:
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean for {name}: {raw}", "INVALID_VALUE")

    try:
        if field_type is int:
            return int(raw)
        if field_type is float:
            return float(raw)
    except ValueError:
        raise ConfigError(f"Invalid number for {name}: {raw}", "INVALID_VALUE")

    return raw


def load_config_from_json(json_string: str) -> IsvClientConfig:
    """Load client configuration from JSON string"""
    return IsvClientConfig.from_json(json_string)


def load_config_from_file(file_path: Union[str, Path]) -> IsvClientConfig:
    """Load client configuration from file"""
    return IsvClientConfig.from_file(file_path)


def load_config_from_env(prefix: str = ENV_PREFIX) -> IsvClientConfig:
    """Load client configuration from environment variables"""
    return IsvClientConfig.from_env(prefix)
