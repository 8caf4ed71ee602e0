#!/usr/bin/env python3
"""
Script to create users of the Train Reservation Platform.
"""

import asyncio
import sys
import os
from getpass import getpass

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from train_reservation_platform.database import init_database, close_database, get_db_session
from train_reservation_platform.models import User
from train_reservation_platform.services.user_service import UserService
from train_reservation_platform.utils.auth import generate_totp_secret
from train_reservation_platform.utils.exceptions import InvalidRequestError


async def create_user():
    """Create a user interactively."""
    print("Train Reservation Platform - User Creation")
    print("=" * 45)

    username = input("Enter username: ").strip()
    if not username:
        print("Username is required!")
        return

    name = input("Enter display name: ").strip() or username

    password = getpass("Enter password: ").strip()
    if not password:
        print("Password is required!")
        return

    if password != getpass("Confirm password: ").strip():
        print("Passwords do not match!")
        return

    with_totp = input("Enable 2FA (TOTP)? (y/N): ").strip().lower() == "y"
    is_admin = input("Make this user an admin? (y/N): ").strip().lower() == "y"
    otp_secret = generate_totp_secret() if with_totp else None

    await init_database(run_consistency_audit=False, use_cache=False)
    try:
        async with get_db_session() as db:
            user = await UserService(db).create_user(
                username=username,
                name=name,
                password=password,
                otp_secret=otp_secret,
                is_admin=is_admin
            )
    except InvalidRequestError as e:
        print(f"Error creating user: {e.message}")
        return
    finally:
        await close_database()

    print("User created successfully!")
    print(f"   ID: {user.id}")
    print(f"   Username: {user.username}")
    print(f"   Admin: {user.is_admin}")
    if otp_secret:
        # Enter this secret in an authenticator app
        print(f"   TOTP secret: {otp_secret}")


async def list_users():
    """List all users."""
    print("Current Users")
    print("=" * 30)

    await init_database(run_consistency_audit=False, use_cache=False)
    try:
        async with get_db_session() as db:
            result = await db.execute(select(User).order_by(User.id))
            users = result.scalars().all()
    finally:
        await close_database()

    if not users:
        print("No users found.")
    for user in users:
        flags = []
        if user.is_admin:
            flags.append("admin")
        if user.can_do_totp:
            flags.append("2FA")
        if not user.is_active:
            flags.append("inactive")
        print(f"{user.id:>4}  {user.username:<20} {user.name:<25} {', '.join(flags)}")


async def main():
    """Main function."""
    if len(sys.argv) > 1 and sys.argv[1] == "list":
        await list_users()
    else:
        await create_user()


if __name__ == "__main__":
    print("Usage:")
    print("  python miscellaneous/create_user.py        # Create a new user")
    print("  python miscellaneous/create_user.py list   # List existing users")
    print()

    asyncio.run(main())
