"""
Database initialization script for deployment.
Creates tables and, when OWNER_EMAIL and OWNER_PASSWORD are set, the first
owner account so that someone can sign in and assign targets.

    python scripts/init_db.py            # create missing tables
    python scripts/init_db.py --reset    # drop the SQLite file first
    python scripts/init_db.py --demo     # also load demo data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from feedportal.auth import create_account, get_account_by_email
from feedportal.database import USE_POSTGRES, init_database, reset_database
from feedportal.profiles import create_profile, get_profile_by_email
from feedportal.roles import Role


def create_owner(email, password, full_name="Owner"):
    """Create the owner account and profile unless they already exist."""
    account = get_account_by_email(email)
    if account:
        print(f"Account {email} already exists.")
    else:
        account = create_account(email, password, full_name)
        print(f"Created account {email}")

    if get_profile_by_email(email):
        print(f"Profile for {email} already exists.")
    else:
        create_profile(email, full_name, Role.OWNER, user_id=account['id'])
        print(f"Created owner profile for {email}")


def main(argv):
    print("=" * 60, flush=True)
    print("Feed Portal - Database Initialization", flush=True)
    print(f"Database: {'PostgreSQL' if USE_POSTGRES else 'SQLite'}", flush=True)
    print("=" * 60, flush=True)

    print("\nStep 1: Creating database tables...")
    print("-" * 40)
    if '--reset' in argv:
        reset_database()
    else:
        init_database()

    print("\nStep 2: Owner account...")
    print("-" * 40)
    email = os.getenv("OWNER_EMAIL")
    password = os.getenv("OWNER_PASSWORD")
    if email and password:
        create_owner(email.strip().lower(), password, os.getenv("OWNER_NAME", "Owner"))
    else:
        print("OWNER_EMAIL / OWNER_PASSWORD not set, skipping.")

    if '--demo' in argv:
        print("\nStep 3: Demo data...")
        print("-" * 40)
        from scripts.seed_demo import seed_orders, seed_people, seed_production, seed_targets
        profiles = seed_people()
        seed_orders(profiles)
        seed_targets(profiles)
        seed_production()

    print("\n" + "=" * 60)
    print("Database initialization complete!")
    print("=" * 60)


if __name__ == "__main__":
    main(sys.argv[1:])
