#!/usr/bin/env python3
"""
Gatekeeper -- account registration, login, and bearer-token verification.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py verify-token eyJhbGciOi...

Environment variables:
  JWT_PRIVATE_KEY   Signing secret for session tokens (at least 32 chars).
                    Required unless DEBUG=true.
  DATABASE_URL      SQLAlchemy URL of the account database.
  BCRYPT_ROUNDS     bcrypt cost factor (default 15).
"""

import argparse
import sys

from auth.errors import AuthError
from auth.tokens import TokenSigner
from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    # Resolve settings up front so a missing key fails before uvicorn starts.
    get_settings()
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _verify_token(args: argparse.Namespace) -> int:
    settings = get_settings()
    signer = TokenSigner(settings.jwt_private_key, settings.token_expire_seconds)
    try:
        claims = signer.verify(args.token)
    except AuthError as exc:
        print(f"  [!] {exc.code}: {exc.message}")
        return 1
    print(f"  email:      {claims.email}")
    if claims.issued_at is not None:
        print(f"  issued at:  {claims.issued_at.isoformat()}")
    print(f"  expires at: {claims.expires_at.isoformat()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatekeeper",
        description="Account registration, login, and bearer-token verification.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1).")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000).")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only).")
    serve.set_defaults(func=_serve)

    verify = sub.add_parser("verify-token", help="Verify a session token and print its claims.")
    verify.add_argument("token", help="The encoded session token.")
    verify.set_defaults(func=_verify_token)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
