#!/usr/bin/env python
"""
Seed the permission catalogue and, optionally, a demo tenant.
"""

import argparse
import asyncio
import sys

from stockroom.core.auth.backend import hash_password
from stockroom.core.database import Base, async_engine, async_session_factory
from stockroom.core.permissions.catalog import seed_permissions
from stockroom.modules.rbac.repos import PermissionRepository, RoleRepository
from stockroom.modules.tenants.repos import TenantRepository
from stockroom.modules.tenants.services import TenantService
from stockroom.modules.users.models import User
from stockroom.modules.users.repos import MembershipRepository, UserRepository


DEMO_OWNER_EMAIL = "owner@stockroom.dev"
DEMO_OWNER_PASSWORD = "password1"


async def create_tables() -> None:
    """Create missing tables (development databases only)."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_default() -> None:
    """Insert missing catalogue permissions."""
    async with async_session_factory() as session:
        created = await seed_permissions(session)
        await session.commit()
        print(f"Seeded {len(created)} permission(s)")


async def seed_demo() -> None:
    """Create a demo owner with one tenant."""
    await seed_default()

    async with async_session_factory() as session:
        users = UserRepository(session)
        owner = await users.get_by_email(DEMO_OWNER_EMAIL)
        if owner:
            print(f"Demo owner already exists: {owner.email}")
            return

        owner = await users.create(
            User(
                email=DEMO_OWNER_EMAIL,
                full_name="Demo Owner",
                password_hash=hash_password(DEMO_OWNER_PASSWORD),
            )
        )
        tenants = TenantService(
            TenantRepository(session),
            users,
            MembershipRepository(session),
            RoleRepository(session),
            PermissionRepository(session),
        )
        tenant = await tenants.create_for_user(owner.id, "Demo Warehouse")
        await session.commit()
        print(f"Created demo owner {owner.email} with tenant {tenant.name} ({tenant.id})")


async def main(scenario: str, create: bool) -> None:
    """Run the seeding based on scenario."""
    if create:
        await create_tables()

    if scenario == "default":
        await seed_default()
    elif scenario == "demo":
        await seed_demo()
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)

    await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the database")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario, args.create_tables))
