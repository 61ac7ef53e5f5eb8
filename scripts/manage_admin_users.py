#!/usr/bin/env python3
"""
Admin User Management Script

Admin access is the `is_admin` flag on the users table; an admin holds every
back-office capability without a team membership.
"""

import os
import sys

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

# Allow running from the scripts/ directory
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.db import get_db_context  # noqa: E402
from models import User  # noqa: E402


def _find_user(db, email: str):
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def list_admin_users():
    """List all admin users"""
    with get_db_context() as db:
        admins = db.query(User).filter(User.is_admin.is_(True)).order_by(User.created_at).all()
        if not admins:
            print("No admin users found.")
            return []
        print("Current Admin Users:")
        print("-" * 50)
        for user in admins:
            print(f"Email: {user.email}  Username: {user.username or 'Unknown'}  Account ID: {user.account_id}")
        print("-" * 50)
        return admins


def set_admin(email: str, is_admin: bool) -> bool:
    """Grant or revoke admin access for the user with this email."""
    with get_db_context() as db:
        try:
            user = _find_user(db, email)
            if not user:
                print(f"❌ User with email '{email}' not found.")
                return False
            if user.is_admin == is_admin:
                print(f"ℹ️  User '{email}' is already {'an admin' if is_admin else 'not an admin'}.")
                return True
            user.is_admin = is_admin
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            print(f"❌ Error updating admin flag: {e}")
            return False

    print(f"✅ Admin privileges {'granted to' if is_admin else 'removed from'} '{email}'.")
    return True


def main(argv=None):
    """Main function to handle command line arguments"""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage:")
        print("  python scripts/manage_admin_users.py list            # List all admin users")
        print("  python scripts/manage_admin_users.py make <email>    # Make user admin")
        print("  python scripts/manage_admin_users.py remove <email>  # Remove admin privileges")
        return 1

    command = argv[0].lower()
    if command == "list":
        list_admin_users()
        return 0
    if command in ("make", "remove"):
        if len(argv) < 2:
            print("❌ Please provide an email address.")
            return 1
        return 0 if set_admin(argv[1], command == "make") else 1

    print(f"❌ Unknown command: {command}")
    print("Available commands: list, make, remove")
    return 1


if __name__ == "__main__":
    sys.exit(main())
