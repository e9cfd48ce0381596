"""
Create Admin Script
Creates (or reuses) a Supabase Auth user and marks it as admin in the users table.
Requires SUPABASE_SERVICE_ROLE_KEY.

Usage: python -m app.scripts.create_admin --email admin@example.com --password <password>
"""

import argparse
import sys
import os
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.catalog_config import USERS
from app.database.record_store import RecordStore, eq
from app.database.supabase_client import get_service_supabase
from supabase import Client
from typing import Optional
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def find_user_id(store: RecordStore, email: str) -> Optional[str]:
    rows = store.query(USERS, [eq("email", email)], columns="id", limit=1)
    return rows[0]["id"] if rows else None


def create_admin(supabase: Client, email: str, password: str) -> Optional[str]:
    """Create the auth user and upsert its users row with role admin. Returns the user id."""
    store = RecordStore(supabase)
    user_id = None
    try:
        auth_response = supabase.auth.admin.create_user({
            "email": email,
            "password": password,
            "email_confirm": True,
        })
        user_id = auth_response.user.id if auth_response and auth_response.user else None
    except Exception as e:
        message = str(e).lower()
        if any(marker in message for marker in ("already registered", "already been registered", "already exists")):
            logger.info(f"Admin user {email} already exists")
            user_id = find_user_id(store, email)
        else:
            raise

    if not user_id:
        logger.warning(f"No user id for {email}; users row not written")
        return None

    store.upsert(USERS, {"id": user_id, "email": email, "role": "admin"})
    logger.info(f"Admin user {email} ready ({user_id})")
    return user_id


def main():
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    args = parser.parse_args()
    if not args.email or not args.password:
        parser.error("--email and --password (or ADMIN_EMAIL/ADMIN_PASSWORD) are required")

    try:
        create_admin(get_service_supabase(), args.email, args.password)
    except Exception as e:
        logger.error(f"Error creating admin user: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
