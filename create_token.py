#!/usr/bin/env python3
"""
Mint an access token for an existing account.

Handy for calling the API from scripts or curl without going through
``/api/auth/login``.  The token is signed with ``JWT_SECRET`` (or the
development fallback), so run it with the same environment as the
server.

Usage:
    python create_token.py --user-id admin1 --role admin --days 365
"""

import argparse

from rahaseva_api.app.core.security import create_access_token


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Print a signed RahaSeva access token.")
    ap.add_argument("--user-id", required=True, help="Store id of the user (e.g. admin1)")
    ap.add_argument("--role", default="user", choices=["user", "helper", "admin"])
    ap.add_argument("--name", default="", help="Display name embedded in the token")
    ap.add_argument("--email", default="", help="Email embedded in the token")
    ap.add_argument("--days", type=float, default=7, help="Lifetime in days (default: 7)")
    return ap


def main(argv=None) -> str:
    args = build_parser().parse_args(argv)
    claim = {"id": args.user_id, "role": args.role, "name": args.name, "email": args.email}
    token = create_access_token({"user": claim}, expires_delta=int(args.days * 24 * 60 * 60))
    print(token)
    return token


if __name__ == "__main__":
    main()
