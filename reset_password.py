#!/usr/bin/env python3
"""
Reset a user's password in the RahaSeva SQLite database.

This script does not read or reveal any existing password.  It sets a
new PBKDF2 hash (format ``salthex$hashhex``) on the user document with
the given email.

Usage:
    python reset_password.py --db ./rahaseva.db --email admin@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import os
import sys

from rahaseva_api.app.core.security import hash_password
from rahaseva_api.app.store import SQLiteDocumentStore


async def reset_password(db_path: str, email: str, new_password: str) -> bool:
    store = SQLiteDocumentStore(db_path)
    user = await store.find_one("users", {"email": email.strip().lower()})
    if user is None:
        return False
    await store.update("users", user["id"], {"password": hash_password(new_password)})
    return True


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Reset a RahaSeva user password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to the SQLite database file")
    ap.add_argument("--email", required=True, help="Email of the user to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    db_path = os.path.abspath(args.db)
    if not os.path.exists(db_path):
        print(f"[!] DB not found: {db_path}", file=sys.stderr)
        return 1

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must be at least 6 characters long.", file=sys.stderr)
        return 1

    if not asyncio.run(reset_password(db_path, args.email, new_password)):
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2
    print(f"[+] Password updated for user: {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
