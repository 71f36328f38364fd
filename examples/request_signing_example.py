#!/usr/bin/env python3
"""
ISV Auth Python SDK - Request Signing Example

This example signs a project page query the way an ISV integration would:
once by hand, once through requests, and once with the configured client.
No request leaves the machine; signed requests are printed as curl commands.
"""

import json
import sys
import os

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import requests

from isv_auth_sdk import (
    # Request signing
    IsvSigner,
    SigningCredential,
    OutboundRequest,
    SigningError,
    # HTTP integration
    IsvAuth,
    IsvClientConfig,
    ValidationError,
)
from isv_auth_sdk.cli import format_curl

BASE_URL = "https://openapi.example.com"


def basic_signing_example():
    """Sign a request by hand and inspect what is hashed"""
    print("=== Basic Request Signing Example ===")

    credential = SigningCredential("example-ak", "example-sk")
    signer = IsvSigner(credential)

    request = OutboundRequest(
        method="POST",
        path="/api/project/pageQuery",
        query=[("status", "ACTIVE"), ("status", "ARCHIVED")],
        headers={"content-type": "application/json", "x-tenant-id": "tenant-001"},
        body=json.dumps({"pageNum": 1, "pageSize": 10}).encode('utf-8')
    )

    canonical = signer.canonicalize(request)
    print(f"1. Canonical content sections: {canonical.describe()}")
    print(f"   Query string: {canonical.query_string}")

    signer.sign(request)
    print("\n2. Signed request:")
    print(format_curl(request, BASE_URL))


def requests_integration_example():
    """Sign through the requests auth hook"""
    print("\n\n=== requests Integration Example ===")

    auth = IsvAuth(
        SigningCredential("example-ak", "example-sk"),
        tenant_id="tenant-001",
        send_trace_id=True
    )
    prepared = requests.Request(
        "GET",
        f"{BASE_URL}/api/project/detail",
        params={"projectId": "42"},
        auth=auth
    ).prepare()

    for name, value in prepared.headers.items():
        if name.lower().startswith("x-"):
            print(f"   {name}: {value}")


def config_example():
    """Build a client configuration from JSON"""
    print("\n\n=== Configuration Example ===")

    config = IsvClientConfig.from_json(json.dumps({
        "rest_url": BASE_URL,
        "access_key_id": "example-ak",
        "secret_key": "example-sk",
        "tenant_id": "tenant-001",
    }))
    print(f"   {config!r}")
    print(f"   Signer: {config.to_signer()!r}")


def error_handling_example():
    """Show the errors raised for bad input"""
    print("\n\n=== Error Handling Example ===")

    try:
        SigningCredential("example-ak", "")
    except ValidationError as e:
        print(f"   Empty secret: {type(e).__name__}: {e}")

    signer = IsvSigner(SigningCredential("example-ak", "example-sk"))
    request = signer.sign(OutboundRequest("GET", "/api/project/detail"))
    try:
        signer.sign(request)
    except SigningError as e:
        print(f"   Signing twice: {e.code}")

    try:
        OutboundRequest.from_url("GET", "not-a-url")
    except SigningError as e:
        print(f"   Invalid URL: {e.code}")


def main():
    """Run all examples"""
    print("ISV Auth Python SDK - Request Signing Examples")
    print("=" * 50)

    basic_signing_example()
    requests_integration_example()
    config_example()
    error_handling_example()

    print("\n\n=== All Examples Completed Successfully! ===")


if __name__ == "__main__":
    main()
