"""
Wire constants for ISV request signing.

Header names are compared case-insensitively by the receiving service, but
they are emitted and signed in the lowercase form below.
"""

# Caller-supplied headers
TENANT_ID_HEADER = "x-tenant-id"
TRACE_ID_HEADER = "x-trace-id"

# Authentication headers injected by the signer
AUTH_VERSION_HEADER = "x-authentication-version"
AUTH_TYPE_HEADER = "x-authentication-type"
SIGNATURE_METHOD_HEADER = "x-signature-method"
ACCESS_KEY_ID_HEADER = "x-isv-ak"
SIGNATURE_HEADER = "x-signature"

# Fixed header values
AUTH_VERSION_1_0 = "1.0"
AUTH_TYPE_ISV = "isv"

# Separators used when flattening header and query mappings
PAIR_SEPARATOR = "&"
KEY_VALUE_SEPARATOR = "="
MULTI_VALUE_SEPARATOR = ","
