"""
Command-line interface for ISV Auth Python SDK
Computes, prints and checks ISV request signatures
"""

import argparse
import json
import logging
import os
import shlex
import sys
from typing import List, Optional, Tuple
from urllib.parse import urlencode

from requests.structures import CaseInsensitiveDict

from . import __version__
from .config.client_config import ENV_PREFIX
from .exceptions import IsvSDKError
from .signing import (
    IsvSigner,
    OutboundRequest,
    SigningCredential,
    SigningError,
    SignatureMethod,
    SIGNATURE_HEADER,
    TENANT_ID_HEADER,
)
from .verification import verify_request


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='isv-sign',
        description='ISV request signing tool: sign, inspect and verify API requests'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'ISV Auth Python SDK {__version__}'
    )

    parser.add_argument(
        '--log-level',
        default=os.environ.get(f'{ENV_PREFIX}LOG_LEVEL', 'WARNING'),
        help='Logging level (default: WARNING)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    sign_parser = subparsers.add_parser('sign', help='Compute authentication headers for a request')
    add_request_arguments(sign_parser)
    sign_parser.add_argument(
        '--format',
        choices=['headers', 'json', 'curl'],
        default='headers',
        help='Output format (default: headers)'
    )
    sign_parser.add_argument(
        '--base-url',
        default=os.environ.get(f'{ENV_PREFIX}REST_URL'),
        help='Server base URL, used by --format curl'
    )

    canonical_parser = subparsers.add_parser('canonical', help='Print the canonical content that gets signed')
    add_request_arguments(canonical_parser)

    verify_parser = subparsers.add_parser('verify', help='Check a signature against a request')
    add_request_arguments(verify_parser)
    verify_parser.add_argument('--signature', required=True, help='Base64 signature to check')

    return parser


def add_request_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments describing the request and credential."""
    parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    parser.add_argument('--path', required=True, help='Encoded request path, e.g. /api/project/pageQuery')
    parser.add_argument(
        '--query',
        action='append',
        default=[],
        metavar='NAME=VALUE',
        help='Query parameter, repeat for multiple values'
    )
    parser.add_argument(
        '--header',
        action='append',
        default=[],
        metavar='NAME=VALUE',
        help='Request header set before signing'
    )

    body_group = parser.add_mutually_exclusive_group()
    body_group.add_argument('--body', help='Request body text')
    body_group.add_argument('--body-file', help='Read request body from file')

    parser.add_argument(
        '--access-key-id',
        default=os.environ.get(f'{ENV_PREFIX}ACCESS_KEY_ID'),
        help=f'Access key ID (default: ${ENV_PREFIX}ACCESS_KEY_ID)'
    )
    parser.add_argument(
        '--secret-key',
        default=os.environ.get(f'{ENV_PREFIX}SECRET_KEY'),
        help=f'Secret key (default: ${ENV_PREFIX}SECRET_KEY)'
    )
    parser.add_argument(
        '--tenant-id',
        default=os.environ.get(f'{ENV_PREFIX}TENANT_ID'),
        help=f'Tenant id (default: ${ENV_PREFIX}TENANT_ID)'
    )
    parser.add_argument(
        '--tenant-header',
        default=os.environ.get(f'{ENV_PREFIX}TENANT_HEADER', TENANT_ID_HEADER),
        help=f'Tenant header name (default: {TENANT_ID_HEADER})'
    )
    parser.add_argument(
        '--signature-method',
        choices=[m.value for m in SignatureMethod],
        default=os.environ.get(f'{ENV_PREFIX}SIGNATURE_METHOD', SignatureMethod.SHA256_HMAC.value),
        help='Keyed hash variant (default: SHA256_HMAC)'
    )


def parse_pairs(values: List[str], option: str) -> List[Tuple[str, str]]:
    """Parse NAME=VALUE arguments, keeping their order."""
    pairs = []
    for item in values:
        if '=' not in item:
            raise argparse.ArgumentTypeError(f"{option} expects NAME=VALUE, got: {item}")
        name, value = item.split('=', 1)
        pairs.append((name, value))
    return pairs


def build_request(args) -> OutboundRequest:
    """Build the request described by the command line."""
    headers = CaseInsensitiveDict(parse_pairs(args.header, '--header'))
    if args.tenant_id and args.tenant_header not in headers:
        headers[args.tenant_header] = args.tenant_id

    body = None
    if args.body is not None:
        body = args.body.encode('utf-8')
    elif args.body_file:
        with open(args.body_file, 'rb') as f:
            body = f.read()

    return OutboundRequest(
        method=args.method.upper(),
        path=args.path,
        query=parse_pairs(args.query, '--query'),
        headers=headers,
        body=body
    )


def build_signer(args) -> IsvSigner:
    """Build the signer from command line credentials."""
    if not args.access_key_id or not args.secret_key:
        raise argparse.ArgumentTypeError(
            f"--access-key-id and --secret-key are required (or set {ENV_PREFIX}ACCESS_KEY_ID and {ENV_PREFIX}SECRET_KEY)"
        )
    return IsvSigner(
        SigningCredential(args.access_key_id, args.secret_key),
        signature_method=args.signature_method,
        tenant_header=args.tenant_header
    )


def format_curl(request: OutboundRequest, base_url: str) -> str:
    """Render a signed request as a curl command."""
    url = base_url.rstrip('/') + request.path
    if request.query:
        url += '?' + urlencode(request.query)

    parts = ['curl', '-X', request.method, shlex.quote(url)]
    for name, value in request.headers.items():
        parts.append(f"\\\n  -H {shlex.quote(f'{name}: {value}')}")
    if request.body:
        parts.append(f"\\\n  -d {shlex.quote(request.body.decode('utf-8', errors='replace'))}")
    return ' '.join(parts)


def handle_sign_command(args) -> int:
    """Handle signature computation."""
    signer = build_signer(args)
    request = signer.sign(build_request(args))

    if args.format == 'json':
        print(json.dumps(dict(request.headers), indent=2))
    elif args.format == 'curl':
        if not args.base_url:
            print(f"Error: --base-url (or {ENV_PREFIX}REST_URL) is required for curl output", file=sys.stderr)
            return 2
        print(format_curl(request, args.base_url))
    else:
        for name, value in request.headers.items():
            print(f"{name}: {value}")

    return 0


def handle_canonical_command(args) -> int:
    """Handle canonical content output."""
    signer = build_signer(args)
    canonical = signer.canonicalize(build_request(args))

    print(canonical.to_bytes().decode('utf-8', errors='replace'))

    sections = canonical.describe()
    print(
        "Sections (bytes): " + ", ".join(f"{name}={size}" for name, size in sections.items()),
        file=sys.stderr
    )
    return 0


def handle_verify_command(args) -> int:
    """Handle signature verification."""
    signer = build_signer(args)
    request = build_request(args)

    expected = signer.sign_headers(request).as_dict()
    expected[SIGNATURE_HEADER] = args.signature
    request.headers.update(expected)

    result = verify_request(request, SigningCredential(args.access_key_id, args.secret_key), args.tenant_header)
    if result.valid:
        print("✓ Signature matches")
        return 0

    print(f"✗ Signature does not match ({result.error_code}): {result.message}")
    return 1


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )

    try:
        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'canonical':
            return handle_canonical_command(args)
        elif args.command == 'verify':
            return handle_verify_command(args)
        else:
            parser.print_help()
            return 1

    except argparse.ArgumentTypeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (SigningError, IsvSDKError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())
