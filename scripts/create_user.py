#!/usr/bin/env python3
"""Create a user record with a bcrypt-hashed password.

Usage:
    python scripts/create_user.py --username alice --email alice@example.com --password s3cret

    # Password from the environment instead of the command line:
    USER_PASSWORD=s3cret python scripts/create_user.py --username alice --email alice@example.com

Environment Variables:
    DATABASE_URL: SQLAlchemy async URL (defaults to the configured database)
    USER_PASSWORD: Password used when --password is omitted
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add project root to path for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


async def create_user(database_url: str, username: str, email: str, password: str) -> dict:
    """Insert the user and return its identity fields."""
    from auth.store import SqlCredentialStore
    from database import session as db

    session_factory = await db.connect(database_url)
    try:
        record = await SqlCredentialStore(session_factory).create_user(username, email, password)
    finally:
        await db.disconnect()
    return {"id": str(record.id), "username": record.username, "email": record.email}


def main(argv: list[str] | None = None) -> int:
    from config.settings import config

    parser = argparse.ArgumentParser(description="Create a user for the auth service")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", default=os.environ.get("USER_PASSWORD"))
    parser.add_argument("--database-url", default=config.database_url)
    args = parser.parse_args(argv)

    if not args.password:
        print("Error: --password or USER_PASSWORD is required", file=sys.stderr)
        return 1

    try:
        user = asyncio.run(create_user(args.database_url, args.username, args.email, args.password))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user['username']} (id: {user['id']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
