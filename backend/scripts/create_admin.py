"""
Script to grant or revoke the admin role
Run: python scripts/create_admin.py [email] [--revoke]

Users are created on their first sign-in, so the account must have signed
in at least once before it can be promoted.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from exam_vault.core.database import SessionLocal
from exam_vault.models.user import ROLE_ADMIN, ROLE_USER
from exam_vault.modules.auth.identity import set_user_role


def create_admin(email=None, revoke=False):
    db = SessionLocal()

    if not email:
        email = input("Admin email: ").strip()
    if not email:
        print("❌ An email is required")
        return 1

    role = ROLE_USER if revoke else ROLE_ADMIN

    try:
        user = set_user_role(db, email, role)
        if user is None:
            print(f"❌ No user with email {email}. They must sign in once first.")
            return 1

        print(f"\n✅ Role updated!")
        print(f"   Email: {user.email}")
        print(f"   Name: {user.name}")
        print(f"   Role: {user.role}")
        return 0

    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 50)
    print("   ADMIN ROLE - Exam Vault")
    print("=" * 50)
    args = [a for a in sys.argv[1:] if a != "--revoke"]
    sys.exit(create_admin(args[0] if args else None, revoke="--revoke" in sys.argv[1:]))
