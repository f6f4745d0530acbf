"""
Utility script to create an admin user for Workflow Atlas.
Run this script to create the first user account.

Usage:
    python create_admin_user.py
    python create_admin_user.py --test     # creates test@test.com / 12345678
    python create_admin_user.py --premium  # also grants an active subscription
"""
from app.db.session import get_engine, init_db
from app.core.security import create_user
from app.core.subscriptions import grant_subscription
from sqlalchemy.orm import Session
import argparse
import getpass


def parse_args():
    parser = argparse.ArgumentParser(
        description="Create an admin user for local development environments."
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Create a default test user (test@test.com / 12345678) without prompts.",
    )
    parser.add_argument(
        "--premium",
        action="store_true",
        help="Grant the new user an active subscription so they can create workflows.",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    print("=" * 60)
    print("Workflow Atlas - Create Admin User")
    print("=" * 60)
    print()

    try:
        init_db()
        print("✓ Database tables initialized")
    except Exception as e:
        print(f"Warning: {e}")

    if args.test:
        email = "test@test.com"
        full_name = "Test User"
        password = "12345678"
        print("Creating default test user: test@test.com / 12345678")
    else:
        email = input("Enter email address: ").strip()
        if not email:
            print("Error: Email is required")
            return

        full_name = input("Enter full name (optional): ").strip() or None

        password = getpass.getpass("Enter password: ")
        password_confirm = getpass.getpass("Confirm password: ")

        if password != password_confirm:
            print("Error: Passwords do not match")
            return

    with Session(get_engine()) as db:
        try:
            user = create_user(
                db=db,
                email=email,
                password=password,
                full_name=full_name,
                role="admin"
            )
            if args.premium:
                grant_subscription(db, user.id)

            print()
            print("✓ User created successfully!")
            print(f"Email: {user.email}")
            print(f"Name: {user.full_name or 'N/A'}")
            print(f"Premium: {'yes' if args.premium else 'no'}")
            print()
            print("You can now log in with: python -m app.client.console --email " + user.email)

        except Exception as e:
            # create_user raises HTTPException; surface its detail when present
            print(f"Error creating user: {getattr(e, 'detail', e)}")


if __name__ == "__main__":
    main()
