#!/usr/bin/env python3
"""Issue a development JWT for a seeded user.

Token issuance belongs to the identity provider in production; this script
only exists so the API can be exercised locally.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import UUID

from jose import jwt

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from app.config import get_settings
from app.database import AsyncSessionLocal, engine
from app.models import User


def issue_token(user_id: UUID, expire_minutes: int | None = None) -> str:
    """Sign a token whose ``sub`` is the user's UUID."""
    settings = get_settings()
    if expire_minutes is None:
        expire_minutes = settings.jwt_access_token_expire_minutes

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def find_user(email: str) -> User | None:
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
    finally:
        await engine.dispose()


def main() -> None:
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Issue a development JWT")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--user-id", type=UUID, help="User UUID")
    target.add_argument("--email", type=str, help="Look the user up by email")
    parser.add_argument("--expire", type=int, help="Expiration in minutes (default: from settings)")
    args = parser.parse_args()

    user_id = args.user_id
    if args.email:
        user = asyncio.run(find_user(args.email))
        if user is None:
            print(f"✗ No user with email {args.email}", file=sys.stderr)
            sys.exit(1)
        user_id = user.id
        print(f"# {user.name} <{user.email}> role={user.role}")

    token = issue_token(user_id, args.expire)
    print(token)
    print()
    print(f'curl -H "Authorization: Bearer {token}" http://localhost:8000/api/requests/pending')


if __name__ == "__main__":
    main()
