#!/usr/bin/env python3
"""Initialize database with seed data."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from app.config import settings
from app.database import AsyncSessionLocal, Base, engine
from app.models import User
from app.schemas.user import UserRole

SEED_USERS = [
    ("admin@example.com", "Ada Admin", UserRole.ADMIN, "Operations", "Administrator"),
    ("maria.approver@example.com", "Maria Lopez", UserRole.APPROVER, "Finance", "Finance Manager"),
    ("sam.approver@example.com", "Sam Okafor", UserRole.APPROVER, "Finance", "Deputy Manager"),
    ("lee.requester@example.com", "Lee Chen", UserRole.REQUESTER, "Engineering", "Engineer"),
]


async def create_seed_data() -> None:
    """Create seed users for development."""
    async with AsyncSessionLocal() as session:
        try:
            result = await session.execute(select(User).limit(1))
            if result.scalar_one_or_none():
                print("✓ Seed data already exists. Skipping...")
                return

            print("Creating seed data...")
            users = []
            for email, name, role, department, position in SEED_USERS:
                user = User(
                    email=email,
                    name=name,
                    role=role.value,
                    department=department,
                    position=position,
                )
                session.add(user)
                users.append(user)
            await session.flush()

            await session.commit()
            for user in users:
                print(f"✓ Created {user.role:<9} {user.email} (ID: {user.id})")

            print("\nIssue a token for any of them with:")
            print("  python scripts/issue_token.py --email maria.approver@example.com")

        except Exception as e:
            await session.rollback()
            print(f"✗ Error creating seed data: {e}")
            raise


async def init_database() -> None:
    """Initialize database schema and seed data."""
    try:
        print("Initializing database...")
        print(f"Database URL: {settings.database_url}")

        import app.models  # noqa: F401

        async with engine.begin() as conn:
            print("Creating database tables...")
            await conn.run_sync(Base.metadata.create_all)
            print("✓ Database tables created successfully!")

        await create_seed_data()

    except Exception as e:
        print(f"✗ Database initialization failed: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


async def drop_all_tables() -> None:
    """Drop all tables (use with caution!)."""
    try:
        print("⚠️  WARNING: This will drop all tables and data!")
        response = input("Are you sure? Type 'yes' to confirm: ")

        if response.lower() != 'yes':
            print("Aborted.")
            return

        async with engine.begin() as conn:
            print("Dropping all tables...")
            await conn.run_sync(Base.metadata.drop_all)
            print("✓ All tables dropped successfully!")

    except Exception as e:
        print(f"✗ Failed to drop tables: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


async def reset_database() -> None:
    """Reset database (drop and recreate)."""
    await drop_all_tables()
    await init_database()


def main() -> None:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Database initialization script")
    parser.add_argument(
        "action",
        choices=["init", "seed", "drop", "reset"],
        help="init (create tables and seed), seed (seed users), drop (drop all tables), reset (drop and recreate)"
    )

    args = parser.parse_args()

    if args.action == "init":
        asyncio.run(init_database())
    elif args.action == "seed":
        asyncio.run(create_seed_data())
    elif args.action == "drop":
        asyncio.run(drop_all_tables())
    elif args.action == "reset":
        asyncio.run(reset_database())


if __name__ == "__main__":
    main()
