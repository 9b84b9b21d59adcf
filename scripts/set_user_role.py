"""
Grant or revoke the admin role for an existing user.

Users are created as technicians on first sign-in; the first admin has to be
promoted from the command line.

Usage:
    python scripts/set_user_role.py user@netmon.com.tr admin [--dry-run]
"""
import sys
import os
import argparse

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fieldservice.db import SessionLocal
from fieldservice.models.models import USER_ROLES, User, utcnow


def set_role(identifier: str, role: str, dry_run: bool = False) -> int:
    db = SessionLocal()
    try:
        user = db.query(User).filter((User.email == identifier) | (User.id == identifier)).first()
        if not user:
            print(f"[ERROR] No user with email or id '{identifier}'")
            return 1
        print(f"[FOUND] {user.id} ({user.email}) role={user.role}")
        if user.role == role:
            print("[SKIP] Role unchanged")
            return 0
        if dry_run:
            print(f"[DRY-RUN] Would set role to {role}")
            return 0
        user.role = role
        user.updated_at = utcnow()
        db.commit()
        print(f"[OK] Role set to {role}")
        return 0
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Set a user's role")
    parser.add_argument("identifier", help="User email or subject id")
    parser.add_argument("role", choices=USER_ROLES)
    parser.add_argument("--dry-run", action="store_true", help="Show what would change without writing")
    args = parser.parse_args()
    sys.exit(set_role(args.identifier, args.role, args.dry_run))


if __name__ == "__main__":
    main()
