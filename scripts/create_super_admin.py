#!/usr/bin/env python3
"""
CLI script to create the initial platform super admin.

Usage (interactive):
    python scripts/create_super_admin.py

Usage (non-interactive, for deployments):
    python scripts/create_super_admin.py --email admin@example.com --password yourpassword --first-name John --last-name Doe
"""

import argparse
import asyncio
import sys
from getpass import getpass
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

from schoolsync.database import engine, get_db_context
from schoolsync.models import User
from schoolsync.models.user import LifecycleState, Role, UserStatus
from schoolsync.utils.security import hash_password


async def create_super_admin(
    email: str | None = None,
    password: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    interactive: bool = True,
    force: bool = False,
):
    """Create a super admin user (no tenant, SUPER_ADMIN role)."""
    print("\n" + "=" * 50)
    print("SchoolSync - Super Admin Setup")
    print("=" * 50 + "\n")

    if not email:
        while True:
            email = input("Enter email address: ").strip().lower()
            if "@" in email and "." in email:
                break
            print("Please enter a valid email address.")
    else:
        email = email.strip().lower()
        if "@" not in email or "." not in email:
            print("Invalid email address.")
            return False

    if not password:
        while True:
            password = getpass("Enter password (min 8 characters): ")
            if len(password) >= 8:
                break
            print("Password must be at least 8 characters.")

        password_confirm = getpass("Confirm password: ")
        if password != password_confirm:
            print("\nPasswords do not match. Aborting.")
            return False
    elif len(password) < 8:
        print("Password must be at least 8 characters.")
        return False

    if not first_name:
        first_name = input("Enter first name: ").strip() or "Super"
    if not last_name:
        last_name = input("Enter last name: ").strip() or "Admin"

    async with get_db_context() as session:
        live_platform_users = (
            User.tenant_id.is_(None),
            User.lifecycle_state == LifecycleState.ACTIVE.value,
        )
        result = await session.execute(
            select(User).where(User.role == Role.SUPER_ADMIN.value, *live_platform_users).limit(1)
        )
        existing = result.scalar_one_or_none()

        if existing and not force:
            print(f"\nA super admin already exists: {existing.email}")
            if interactive:
                confirm = input("Create another super admin? (y/n): ").strip().lower()
                if confirm != "y":
                    print("Aborting.")
                    return False
            else:
                print("Use --force to create another super admin.")
                return False

        result = await session.execute(
            select(User.id).where(func.lower(User.email) == email, *live_platform_users)
        )
        if result.scalar_one_or_none():
            print(f"\nPlatform user with email {email} already exists.")
            return False

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role.SUPER_ADMIN.value,
            tenant_id=None,  # Super admins don't belong to a tenant
            status=UserStatus.ACTIVE.value,
            lifecycle_state=LifecycleState.ACTIVE.value,
        )

        session.add(user)
        await session.flush()

        print("\n" + "=" * 50)
        print("Super Admin Created Successfully!")
        print("=" * 50)
        print(f"  Email: {user.email}")
        print(f"  Name: {user.first_name} {user.last_name}")
        print(f"  ID: {user.id}")
        print("=" * 50 + "\n")

        return True


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create a SchoolSync super admin user")
    parser.add_argument("--email", "-e", help="Admin email address")
    parser.add_argument("--password", "-p", help="Admin password (min 8 chars)")
    parser.add_argument("--first-name", "-f", help="First name", default="Super")
    parser.add_argument("--last-name", "-l", help="Last name", default="Admin")
    parser.add_argument("--force", action="store_true", help="Force creation even if super admin exists")

    args = parser.parse_args()

    interactive = not (args.email and args.password)

    try:
        success = await create_super_admin(
            email=args.email,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
            interactive=interactive,
            force=args.force,
        )
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
