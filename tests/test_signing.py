"""
Test suite for ISV HMAC request signing

This module tests canonical content construction, signature computation and
header injection, checking signatures against an independent HMAC.
"""

import base64
import hashlib
import hmac
import io

import pytest

from isv_auth_sdk.signing import (
    # Core signing
    IsvSigner,
    create_signer,
    sign_request,
    calculate_signature,
    # Types
    OutboundRequest,
    SigningCredential,
    SignatureHeaderSet,
    SignatureMethod,
    SigningError,
    SigningErrorCodes,
    # Canonical content
    build_signed_header_items,
    build_query_items,
    connect_param_items,
    build_canonical_content,
    # Utilities
    buffer_body,
    split_url,
    is_blank,
    generate_trace_id,
)
from isv_auth_sdk.exceptions import ValidationError


AUTH_HEADER_STRING = (
    "x-authentication-type=isv&x-authentication-version=1.0"
    "&x-isv-ak=AK1&x-signature-method=SHA256_HMAC"
)


def expected_signature(secret: bytes, content: bytes, digest=hashlib.sha256) -> str:
    return base64.b64encode(hmac.new(secret, content, digest).digest()).decode('ascii')


class FailingStream:
    """Stream whose read always fails"""

    def read(self, *args):
        raise OSError("disk went away")


class CountingStream(io.BytesIO):
    """BytesIO that counts read calls"""

    def __init__(self, data):
        super().__init__(data)
        self.reads = 0

    def read(self, *args):
        self.reads += 1
        return super().read(*args)


class TestSigningCredential:
    """Test credential validation"""

    def test_str_secret_is_encoded(self):
        credential = SigningCredential("AK1", "SK1")
        assert credential.secret_key == b"SK1"

    def test_bytes_secret_kept(self):
        credential = SigningCredential("AK1", bytearray(b"\x00\x01"))
        assert credential.secret_key == b"\x00\x01"

    def test_empty_values_rejected(self):
        with pytest.raises(ValidationError):
            SigningCredential("", "SK1")
        with pytest.raises(ValidationError):
            SigningCredential("AK1", "")
        with pytest.raises(ValidationError):
            SigningCredential("AK1", 12345)

    def test_secret_not_in_repr(self):
        credential = SigningCredential("AK1", "super-secret")
        assert "super-secret" not in repr(credential)
        assert "AK1" in repr(credential)


class TestSigningUtilities:
    """Test utility functions"""

    def test_buffer_body_variants(self):
        assert buffer_body(None) == b""
        assert buffer_body(b"abc") == b"abc"
        assert buffer_body(bytearray(b"abc")) == b"abc"
        assert buffer_body("héllo") == "héllo".encode('utf-8')
        assert buffer_body(io.BytesIO(b"stream")) == b"stream"
        assert buffer_body(io.StringIO("text")) == b"text"
        assert buffer_body(iter([b"a", "b", b"c"])) == b"abc"

    def test_buffer_body_rejects_unsupported(self):
        with pytest.raises(SigningError) as exc_info:
            buffer_body({"key": "value"})
        assert exc_info.value.code == SigningErrorCodes.UNSUPPORTED_BODY

        with pytest.raises(SigningError) as exc_info:
            buffer_body(42)
        assert exc_info.value.code == SigningErrorCodes.UNSUPPORTED_BODY

    def test_buffer_body_propagates_os_error(self):
        with pytest.raises(OSError):
            buffer_body(FailingStream())

    def test_split_url(self):
        path, query = split_url("https://api.example.com/v1/data%20set?b=2&a=1&a=&c")
        assert path == "/v1/data%20set"
        assert query == [("b", "2"), ("a", "1"), ("a", ""), ("c", "")]

    def test_split_url_empty_path(self):
        path, query = split_url("https://api.example.com")
        assert path == "/"
        assert query == []

    def test_split_url_invalid(self):
        for url in ("", None, "/relative/path", "not a url"):
            with pytest.raises(SigningError) as exc_info:
                split_url(url)
            assert exc_info.value.code == SigningErrorCodes.INVALID_URL

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("")
        assert is_blank("   ")
        assert is_blank(" \t\r\n\x0b\x0c")
        assert not is_blank("T1")

    def test_non_breaking_spaces_are_not_blank(self):
        for value in ("\u00a0", "\u2007", "\u202f", "\u0085", " \u00a0 "):
            assert not is_blank(value)

    def test_generate_trace_id(self):
        ids = {generate_trace_id() for _ in range(10)}
        assert len(ids) == 10


class TestCanonicalContent:
    """Test canonical content construction"""

    def setup_method(self):
        self.credential = SigningCredential("AK1", "SK1")

    def test_header_items_sorted(self):
        items = build_signed_header_items(self.credential, {})
        assert [name for name, _ in items] == [
            "x-authentication-type",
            "x-authentication-version",
            "x-isv-ak",
            "x-signature-method",
        ]
        assert connect_param_items(items) == AUTH_HEADER_STRING

    def test_tenant_included_when_present(self):
        items = build_signed_header_items(self.credential, {"x-tenant-id": "T1"})
        assert items[-1] == ("x-tenant-id", "T1")

    def test_blank_tenant_excluded(self):
        for value in ("", "   "):
            items = build_signed_header_items(self.credential, {"x-tenant-id": value})
            assert "x-tenant-id" not in dict(items)

    def test_other_headers_not_signed(self):
        items = build_signed_header_items(
            self.credential,
            {"content-type": "application/json", "x-trace-id": "abc", "x-signature": "old"}
        )
        names = dict(items)
        assert "content-type" not in names
        assert "x-trace-id" not in names
        assert "x-signature" not in names

    def test_non_breaking_space_tenant_included(self):
        items = build_signed_header_items(self.credential, {"x-tenant-id": "\u00a0"})
        assert dict(items)["x-tenant-id"] == "\u00a0"

    def test_query_items_grouped_and_sorted(self):
        items = build_query_items([("z", "1"), ("name", "a"), ("b", ""), ("name", "b")])
        assert items == (("b", ""), ("name", "a,b"), ("z", "1"))
        assert connect_param_items(items) == "b=&name=a,b&z=1"

    def test_comma_values_are_not_escaped(self):
        assert build_query_items([("n", "a,b")]) == build_query_items([("n", "a"), ("n", "b")])

    def test_sections_concatenated_without_separator(self):
        canonical = build_canonical_content(
            "/v1/data",
            (("x-isv-ak", "AK1"),),
            (("page", "1"),),
            b'{"a":1}'
        )
        assert canonical.to_bytes() == b'/v1/datax-isv-ak=AK1page=1{"a":1}'
        assert canonical.describe() == {"path": 8, "headers": 12, "query": 6, "body": 7}


class TestIsvSigner:
    """Test the ISV signer"""

    def setup_method(self):
        self.credential = SigningCredential("AK1", "SK1")
        self.signer = IsvSigner(self.credential)

    def test_signs_simple_get(self):
        request = OutboundRequest(method="GET", path="/v1/data")
        self.signer.sign(request)

        content = ("/v1/data" + AUTH_HEADER_STRING).encode('utf-8')
        assert request.headers["x-signature"] == expected_signature(b"SK1", content)
        assert request.headers["x-authentication-version"] == "1.0"
        assert request.headers["x-authentication-type"] == "isv"
        assert request.headers["x-signature-method"] == "SHA256_HMAC"
        assert request.headers["x-isv-ak"] == "AK1"
        assert "x-tenant-id" not in request.headers

    def test_signs_query_and_body(self):
        request = OutboundRequest(
            method="POST",
            path="/api/project/pageQuery",
            query=[("size", "10"), ("name", "a"), ("name", "b")],
            headers={"Content-Type": "application/json", "X-Tenant-Id": "T1"},
            body=b'{"page":1}'
        )
        self.signer.sign(request)

        content = (
            "/api/project/pageQuery"
            + AUTH_HEADER_STRING + "&x-tenant-id=T1"
            + "name=a,b&size=10"
            + '{"page":1}'
        ).encode('utf-8')
        assert request.headers["x-signature"] == expected_signature(b"SK1", content)
        assert request.headers["x-tenant-id"] == "T1"
        assert request.headers["Content-Type"] == "application/json"

    def test_deterministic(self):
        first = self.signer.sign_headers(OutboundRequest("GET", "/v1/data", [("a", "1")]))
        second = self.signer.sign_headers(OutboundRequest("GET", "/v1/data", [("a", "1")]))
        assert first == second

    def test_query_order_does_not_matter(self):
        first = self.signer.sign_headers(OutboundRequest("GET", "/p", [("b", "2"), ("a", "1")]))
        second = self.signer.sign_headers(OutboundRequest("GET", "/p", [("a", "1"), ("b", "2")]))
        assert first.signature == second.signature

    def test_header_order_does_not_matter(self):
        headers = [
            ("Content-Type", "application/json"),
            ("X-Tenant-Id", "T1"),
            ("Accept", "application/json"),
        ]
        forward = OutboundRequest("POST", "/p", headers=dict(headers), body=b"{}")
        backward = OutboundRequest("POST", "/p", headers=dict(reversed(headers)), body=b"{}")

        assert self.signer.canonicalize(forward).to_bytes() == self.signer.canonicalize(backward).to_bytes()
        assert self.signer.sign_headers(forward).signature == self.signer.sign_headers(backward).signature

    def test_none_query_value_signs_as_empty(self):
        request = OutboundRequest("GET", "/p", query=[("a", None), ("b", "1")])
        assert request.query == [("a", ""), ("b", "1")]

        content = ("/p" + AUTH_HEADER_STRING + "a=&b=1").encode('utf-8')
        assert self.signer.sign(request).headers["x-signature"] == expected_signature(b"SK1", content)

    def test_multi_value_order_matters(self):
        first = self.signer.sign_headers(OutboundRequest("GET", "/p", [("n", "a"), ("n", "b")]))
        second = self.signer.sign_headers(OutboundRequest("GET", "/p", [("n", "b"), ("n", "a")]))
        assert first.signature != second.signature

    def test_body_changes_signature(self):
        first = self.signer.sign_headers(OutboundRequest("POST", "/p", body=b"one"))
        second = self.signer.sign_headers(OutboundRequest("POST", "/p", body=b"two"))
        assert first.signature != second.signature

    def test_method_is_not_signed(self):
        first = self.signer.sign_headers(OutboundRequest("GET", "/p"))
        second = self.signer.sign_headers(OutboundRequest("DELETE", "/p"))
        assert first.signature == second.signature

    def test_tenant_changes_signature(self):
        plain = self.signer.sign_headers(OutboundRequest("GET", "/p"))
        blank = self.signer.sign_headers(OutboundRequest("GET", "/p", headers={"x-tenant-id": " "}))
        tenant = self.signer.sign_headers(OutboundRequest("GET", "/p", headers={"x-tenant-id": "T1"}))
        assert plain.signature == blank.signature
        assert plain.signature != tenant.signature
        assert blank.tenant_id is None
        assert tenant.tenant_id == "T1"

    def test_custom_tenant_header(self):
        signer = IsvSigner(self.credential, tenant_header="X-Org-Id")
        assert signer.tenant_header == "x-org-id"

        request = signer.sign(OutboundRequest("GET", "/p", headers={"X-Org-Id": "T1"}))
        content = ("/p" + AUTH_HEADER_STRING + "&x-org-id=T1").encode('utf-8')
        assert request.headers["x-signature"] == expected_signature(b"SK1", content)
        assert "x-tenant-id" not in request.headers

    def test_sha512_variant(self):
        signer = IsvSigner(self.credential, signature_method="SHA512_HMAC")
        request = signer.sign(OutboundRequest("GET", "/p"))

        content = ("/p" + AUTH_HEADER_STRING.replace("SHA256", "SHA512")).encode('utf-8')
        assert request.headers["x-signature-method"] == "SHA512_HMAC"
        assert request.headers["x-signature"] == expected_signature(b"SK1", content, hashlib.sha512)

    def test_already_signed_rejected(self):
        request = self.signer.sign(OutboundRequest("GET", "/p"))
        with pytest.raises(SigningError) as exc_info:
            self.signer.sign(request)
        assert exc_info.value.code == SigningErrorCodes.ALREADY_SIGNED

    def test_failed_body_leaves_headers_untouched(self):
        request = OutboundRequest("POST", "/p", headers={"Accept": "application/json"}, body=FailingStream())
        with pytest.raises(OSError):
            self.signer.sign(request)
        assert dict(request.headers) == {"Accept": "application/json"}

    def test_stream_body_read_once(self):
        stream = CountingStream(b"payload")
        request = self.signer.sign(OutboundRequest("POST", "/p", body=stream))

        assert stream.reads == 1
        assert request.body == b"payload"
        content = ("/p" + AUTH_HEADER_STRING).encode('utf-8') + b"payload"
        assert request.headers["x-signature"] == expected_signature(b"SK1", content)

    def test_iterable_body_buffered(self):
        request = self.signer.sign(OutboundRequest("POST", "/p", body=(c for c in [b"pay", b"load"])))
        assert request.body == b"payload"

    def test_invalid_configuration(self):
        with pytest.raises(SigningError) as exc_info:
            IsvSigner("not a credential")
        assert exc_info.value.code == SigningErrorCodes.INVALID_CREDENTIAL

        with pytest.raises(SigningError) as exc_info:
            IsvSigner(self.credential, signature_method="MD5")
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

        with pytest.raises(SigningError) as exc_info:
            IsvSigner(self.credential, tenant_header=" ")
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

    def test_invalid_request(self):
        with pytest.raises(SigningError) as exc_info:
            self.signer.sign({"path": "/p"})
        assert exc_info.value.code == SigningErrorCodes.INVALID_REQUEST

        with pytest.raises(SigningError) as exc_info:
            OutboundRequest("GET", "")
        assert exc_info.value.code == SigningErrorCodes.INVALID_URL

    def test_repr_hides_secret(self):
        assert "SK1" not in repr(self.signer)

    def test_header_set_order(self):
        header_set = SignatureHeaderSet(
            access_key_id="AK1",
            signature_method=SignatureMethod.SHA256_HMAC,
            signature="c2ln",
            tenant_id="T1"
        )
        assert list(header_set.as_dict()) == [
            "x-authentication-type",
            "x-authentication-version",
            "x-isv-ak",
            "x-signature-method",
            "x-tenant-id",
            "x-signature",
        ]


class TestConvenienceFunctions:
    """Test module level helpers"""

    def test_create_signer(self):
        signer = create_signer(SigningCredential("AK1", "SK1"), "SHA512_HMAC")
        assert isinstance(signer, IsvSigner)
        assert signer.signature_method == SignatureMethod.SHA512_HMAC

    def test_sign_request(self):
        request = OutboundRequest.from_url("get", "https://api.example.com/v1/data")
        signed = sign_request(request, SigningCredential("AK1", "SK1"))

        assert signed is request
        assert signed.method == "GET"
        content = ("/v1/data" + AUTH_HEADER_STRING).encode('utf-8')
        assert signed.headers["x-signature"] == expected_signature(b"SK1", content)

    def test_calculate_signature_matches_signer(self):
        request = OutboundRequest(
            "GET", "/p",
            query=[("name", "a"), ("name", "b")],
            headers={"x-tenant-id": "T1"}
        )
        signed = IsvSigner(SigningCredential("AK1", "SK1")).sign(request)

        headers = {
            "x-authentication-version": "1.0",
            "x-authentication-type": "isv",
            "x-signature-method": "SHA256_HMAC",
            "x-isv-ak": "AK1",
            "x-tenant-id": "T1",
        }
        signature = calculate_signature("SK1", "/p", headers, {"name": ["a", "b"]})
        assert signature == signed.headers["x-signature"]

    def test_calculate_signature_none_param(self):
        with_none = calculate_signature("SK1", "/p", params={"a": None})
        with_empty = calculate_signature("SK1", "/p", params={"a": ""})
        assert with_none == with_empty
