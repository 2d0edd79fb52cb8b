"""Permission resolution.

Pure functions that decide whether a set of granted permission names
satisfies the permissions an action requires. Granting ``inventory.*``
covers every ``inventory.<action>``; granting ``*`` covers everything.
"""

from collections.abc import Iterable

from stockroom.core.constants import WILDCARD_PERMISSION


def permission_module(name: str) -> str | None:
    """Return the module part of a permission name.

    Args:
        name: Permission name such as "inventory.read"

    Returns:
        The text before the first dot, or None for dot-less names

    Examples:
        >>> permission_module("inventory.stock.adjust")
        'inventory'
        >>> permission_module("*") is None
        True
    """
    if "." not in name:
        return None
    return name.split(".", 1)[0]


def module_wildcard(name: str) -> str | None:
    """Return ``<module>.*`` for a dotted name, None otherwise."""
    module = permission_module(name)
    return f"{module}.*" if module is not None else None


def expand_permissions(granted: Iterable[str]) -> set[str]:
    """Expand granted permissions with their module wildcards.

    Every dotted permission also contributes ``<module>.*``.

    Args:
        granted: Permission names conferred by a membership's roles

    Returns:
        The expanded permission set
    """
    expanded: set[str] = set()
    for name in granted:
        expanded.add(name)
        wildcard = module_wildcard(name)
        if wildcard is not None:
            expanded.add(wildcard)
    return expanded


def has_permission(required: Iterable[str], granted: Iterable[str]) -> bool:
    """Check whether granted permissions satisfy any required permission.

    A required name is satisfied when it appears in the expanded grant set,
    so any ``inventory.<action>`` grant satisfies a required ``inventory.*``.
    A concrete requirement such as ``inventory.write`` falls back to its
    module wildcard only when that wildcard was granted explicitly.

    Args:
        required: Permissions demanded by the action (any one suffices)
        granted: Permissions the caller holds

    Returns:
        True if access is allowed
    """
    required_set = set(required)
    if not required_set:
        return True

    granted_set = set(granted)
    if WILDCARD_PERMISSION in granted_set:
        return True

    expanded = expand_permissions(granted_set)
    for name in required_set:
        if name in expanded:
            return True
        wildcard = module_wildcard(name)
        if wildcard is not None and wildcard in granted_set:
            return True
    return False
