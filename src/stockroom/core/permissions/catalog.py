"""Global permission catalogue and idempotent seeding."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.permissions.models import Permission


# (name, description) pairs; order is the display order of the seed log only
PERMISSION_CATALOG: list[tuple[str, str]] = [
    ("*", "Full access to every module"),
    # Purchases
    ("purchases.*", "Any purchases action"),
    ("purchases.create", "Create purchases"),
    ("purchases.read", "View purchases"),
    ("purchases.update", "Edit purchases"),
    ("purchases.delete", "Delete purchases"),
    ("purchases.po.create", "Create purchase orders"),
    ("purchases.po.read", "View purchase orders"),
    ("purchases.po.update", "Edit/update purchase orders"),
    ("purchases.po.receive", "Receive/close purchase orders"),
    ("purchases.po.cancel", "Cancel purchase orders"),
    # Inventory
    ("inventory.*", "Any inventory action"),
    ("inventory.create", "Create inventory items"),
    ("inventory.read", "View inventory"),
    ("inventory.update", "Edit inventory"),
    ("inventory.delete", "Delete inventory"),
    ("inventory.product.read", "View products"),
    ("inventory.product.manage", "Create/update/archive products"),
    ("inventory.stock.adjust", "Manual stock adjustments"),
    ("inventory.stock.reserve", "Reserve/release stock"),
    ("inventory.stock.transfer", "Transfer stock between warehouses"),
    # Suppliers and warehouses
    ("suppliers.read", "View suppliers"),
    ("suppliers.manage", "Create/update/archive suppliers"),
    ("warehouses.read", "View warehouses"),
    ("warehouses.manage", "Create/update/archive warehouses"),
    # Administration
    ("role.manage", "Manage roles and permissions"),
    ("user.manage", "Manage users"),
    ("tenant.manage", "Manage tenant settings"),
]


async def seed_permissions(session: AsyncSession) -> list[Permission]:
    """Insert catalogue permissions that are missing.

    Existing rows are left untouched, including their descriptions.

    Args:
        session: Database session

    Returns:
        The permissions that were created
    """
    result = await session.execute(select(Permission.name))
    existing = set(result.scalars().all())

    created = [
        Permission(name=name, description=description)
        for name, description in PERMISSION_CATALOG
        if name not in existing
    ]
    session.add_all(created)
    await session.flush()
    return created
