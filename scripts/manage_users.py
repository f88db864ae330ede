# scripts/manage_users.py

import argparse
import asyncio
import sys

from logistics_pro.core.config import get_settings
from logistics_pro.core.constants import Role
from logistics_pro.core.errors import Conflict
from logistics_pro.crud.user import delete_user, ensure_super_admin, get_user_by_phone, list_users
from logistics_pro.db import Database

if sys.platform.startswith('win') and sys.version_info < (3, 10):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def _database() -> Database:
    return Database(get_settings().database_url)


async def seed_admin(phone: str, password: str, name: str):
    database = _database()
    try:
        await database.create_tables()
        async with database.session_factory() as session:
            user = await ensure_super_admin(session, phone, password, name)
            print(f"✅ Super admin ready: {user.name} ({user.phone})")
    finally:
        await database.dispose()


async def show_users(role=None):
    database = _database()
    try:
        async with database.session_factory() as session:
            users = await list_users(session, Role(role) if role else None)
            if not users:
                print("⚠️  No users found.")
            for user in users:
                flags = []
                if not user.is_active:
                    flags.append("disabled")
                if not user.is_approved:
                    flags.append("pending")
                suffix = f" [{', '.join(flags)}]" if flags else ""
                print(f"{user.phone:<16} {user.role:<12} {user.name}{suffix}")
    finally:
        await database.dispose()


async def delete_by_phone(phone: str):
    database = _database()
    try:
        async with database.session_factory() as session:
            user = await get_user_by_phone(session, phone)
            if not user:
                print(f"⚠️  No user found with phone: {phone}")
                return
            try:
                await delete_user(session, user.id, actor_id=None, actor_role=None)
            except Conflict as exc:
                print(f"❌ {exc.message}")
                return
            print(f"🗑️  Deleted user: {user.name} ({phone})")
    finally:
        await database.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage Logistics Pro users")
    parser.add_argument("--seed-admin", action="store_true", help="Create the super admin if missing")
    parser.add_argument("--list", action="store_true", help="List users")
    parser.add_argument("--delete", action="store_true", help="Delete a user by phone")
    parser.add_argument("--phone", type=str, help="Phone number of the user")
    parser.add_argument("--password", type=str, help="Password for --seed-admin")
    parser.add_argument("--name", type=str, default="Super Admin", help="Display name for --seed-admin")
    parser.add_argument("--role", type=str, choices=[r.value for r in Role], help="Filter for --list")

    args = parser.parse_args()

    if args.seed_admin and args.phone and args.password:
        asyncio.run(seed_admin(args.phone, args.password, args.name))
    elif args.list:
        asyncio.run(show_users(role=args.role))
    elif args.delete and args.phone:
        asyncio.run(delete_by_phone(args.phone))
    else:
        print("❗ Usage:")
        print("  python -m scripts.manage_users --seed-admin --phone 0500000000 --password secret")
        print("  python -m scripts.manage_users --list --role driver")
        print("  python -m scripts.manage_users --delete --phone 0500000000")
