"""
Seed Admin User

Creates the first back-office admin. Credentials come from the
environment so they never live in the repository:

    ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME, ADMIN_SURNAME (optional)

Usage:
    ADMIN_EMAIL=... ADMIN_PASSWORD=... ADMIN_NAME=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from it13.core.database import async_session_maker, close_db
from it13.core.security import hash_password_async
from it13.modules.admins.repository import AdminRepository
from it13.modules.auth.password_policy import check_password_strength


async def seed_admin() -> int:
    """Create the admin if it doesn't exist. Returns a process exit code."""
    email = os.environ.get("ADMIN_EMAIL", "").strip()
    password = os.environ.get("ADMIN_PASSWORD", "")
    name = os.environ.get("ADMIN_NAME", "").strip()
    surname = os.environ.get("ADMIN_SURNAME", "").strip()

    if not email or not password or not name:
        print("ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME must be set")
        return 1

    strength = check_password_strength(password)
    if not strength.is_valid:
        print("ADMIN_PASSWORD is too weak:")
        for message in strength.messages:
            print(f"  - {message}")
        return 1

    async with async_session_maker() as db:
        existing = await AdminRepository.get_by_email(db, email)
        if existing:
            print(f"Admin already exists: {existing.email}")
            print(f"  ID: {existing.id}")
            return 0

        admin = await AdminRepository.create(
            db,
            email=email,
            password_hash=await hash_password_async(password),
            name=name,
            surname=surname,
        )
        await db.commit()

        print("Admin created successfully!")
        print(f"  Email: {admin.email}")
        print(f"  Name: {admin.full_name}")
        print(f"  ID: {admin.id}")

    await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
