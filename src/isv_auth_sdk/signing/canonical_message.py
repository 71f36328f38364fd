"""
Canonical content construction for ISV request signatures

The canonical content is the exact byte string the keyed hash is computed
over. A verifying server rebuilds it from the received request, so the
layout below is a wire contract:

    encoded_path || header_kv_string || query_kv_string || raw_body

where each kv string is ``key=value`` pairs joined by ``&`` in ascending key
order, with no separator between the four sections.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .constants import (
    AUTH_VERSION_HEADER,
    AUTH_TYPE_HEADER,
    SIGNATURE_METHOD_HEADER,
    ACCESS_KEY_ID_HEADER,
    AUTH_VERSION_1_0,
    AUTH_TYPE_ISV,
    TENANT_ID_HEADER,
    PAIR_SEPARATOR,
    KEY_VALUE_SEPARATOR,
    MULTI_VALUE_SEPARATOR,
)
from .types import (
    SigningCredential,
    SignatureMethod,
    HeaderItems,
)
from .utils import is_blank


@dataclass(frozen=True)
class CanonicalContent:
    """
    Canonical content of one request, kept per section for debugging

    Attributes:
        path: Encoded request path
        header_string: Serialized signed headers
        query_string: Serialized query parameters
        body: Buffered request body
        header_items: Signed headers in key order
    """
    path: str
    header_string: str
    query_string: str
    body: bytes
    header_items: HeaderItems

    def to_bytes(self) -> bytes:
        """Return the HMAC preimage."""
        return (
            self.path.encode('utf-8')
            + self.header_string.encode('utf-8')
            + self.query_string.encode('utf-8')
            + self.body
        )

    def describe(self) -> Dict[str, int]:
        """Byte length of each section."""
        return {
            "path": len(self.path.encode('utf-8')),
            "headers": len(self.header_string.encode('utf-8')),
            "query": len(self.query_string.encode('utf-8')),
            "body": len(self.body),
        }


def build_signed_header_items(
    credential: SigningCredential,
    headers: Optional[Mapping[str, str]] = None,
    signature_method: SignatureMethod = SignatureMethod.SHA256_HMAC,
    tenant_header: str = TENANT_ID_HEADER
) -> HeaderItems:
    """
    Build the sorted header pairs that take part in the signature.

    Only the tenant header is taken from the request, and only when it is
    set to a non-blank value. The signature header is never included.

    Args:
        credential: Credential providing the access key id
        headers: Case-insensitive request headers before signing
        signature_method: Keyed hash variant announced in the headers
        tenant_header: Name of the tenant identifier header

    Returns:
        tuple: (name, value) pairs sorted by name
    """
    items = {
        AUTH_VERSION_HEADER: AUTH_VERSION_1_0,
        AUTH_TYPE_HEADER: AUTH_TYPE_ISV,
        SIGNATURE_METHOD_HEADER: signature_method.value,
        ACCESS_KEY_ID_HEADER: credential.access_key_id,
    }

    tenant_id = headers.get(tenant_header) if headers is not None else None
    if not is_blank(tenant_id):
        items[tenant_header] = tenant_id

    return tuple(sorted(items.items()))


def build_query_items(query: Iterable[Tuple[str, str]]) -> Tuple[Tuple[str, str], ...]:
    """
    Collapse multi-valued query parameters and sort them by name.

    Values of one name are joined with a comma in their original order.
    Values are not escaped, so ``a,b`` as one value and ``a`` + ``b`` as two
    values produce the same content.

    Args:
        query: Ordered (name, value) pairs

    Returns:
        tuple: (name, joined values) pairs sorted by name
    """
    grouped: Dict[str, List[str]] = {}
    for name, value in query:
        grouped.setdefault(name, []).append(value)

    return tuple(
        (name, MULTI_VALUE_SEPARATOR.join(grouped[name]))
        for name in sorted(grouped)
    )


def connect_param_items(items: Iterable[Tuple[str, str]]) -> str:
    """
    Serialize sorted pairs as ``k1=v1&k2=v2``.

    Args:
        items: Pairs already in the desired order

    Returns:
        str: Serialized pairs, empty for no pairs
    """
    return PAIR_SEPARATOR.join(
        f"{name}{KEY_VALUE_SEPARATOR}{value}" for name, value in items
    )


def build_canonical_content(
    path: str,
    header_items: HeaderItems,
    query_items: Iterable[Tuple[str, str]],
    body: bytes = b""
) -> CanonicalContent:
    """
    Assemble the canonical content from already prepared parts.

    Args:
        path: Encoded request path
        header_items: Sorted signed header pairs
        query_items: Sorted, collapsed query pairs
        body: Buffered body bytes

    Returns:
        CanonicalContent: Content ready for hashing
    """
    return CanonicalContent(
        path=path,
        header_string=connect_param_items(header_items),
        query_string=connect_param_items(query_items),
        body=body or b"",
        header_items=tuple(header_items),
    )
