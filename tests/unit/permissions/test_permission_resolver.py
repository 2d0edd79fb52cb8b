"""Unit tests for permission resolution.

These tests verify:
- Module wildcard grants
- The universal wildcard
- Empty requirements
- Exact, case-sensitive matching of dot-less names
"""

import pytest

from stockroom.core.permissions.resolver import (
    expand_permissions,
    has_permission,
    module_wildcard,
    permission_module,
)


pytestmark = pytest.mark.unit


class TestPermissionModule:
    """Tests for splitting permission names."""

    def test_module_is_text_before_first_dot(self):
        assert permission_module("inventory.stock.adjust") == "inventory"

    def test_dotless_name_has_no_module(self):
        assert permission_module("*") is None
        assert permission_module("reports") is None
        assert module_wildcard("reports") is None

    def test_module_wildcard(self):
        assert module_wildcard("purchases.po.create") == "purchases.*"


class TestExpandPermissions:
    """Tests for grant expansion."""

    def test_adds_module_wildcard_for_dotted_names(self):
        expanded = expand_permissions(["inventory.read", "reports"])

        assert expanded == {"inventory.read", "inventory.*", "reports"}

    def test_empty_grants(self):
        assert expand_permissions([]) == set()


class TestHasPermission:
    """Tests for required-vs-granted matching."""

    def test_concrete_grant_does_not_cover_sibling_action(self):
        """inventory.read must not satisfy inventory.write."""
        assert has_permission({"inventory.write"}, {"inventory.read"}) is False

    def test_module_wildcard_grant_covers_every_action(self):
        assert has_permission({"inventory.write"}, {"inventory.*"}) is True
        assert has_permission({"inventory.stock.adjust"}, {"inventory.*"}) is True

    def test_module_wildcard_grant_does_not_cover_other_modules(self):
        assert has_permission({"purchases.read"}, {"inventory.*"}) is False

    def test_required_module_wildcard_satisfied_by_any_action(self):
        """A requirement of inventory.* is met by any inventory grant."""
        assert has_permission({"inventory.*"}, {"inventory.read"}) is True

    @pytest.mark.parametrize(
        "required",
        [{"inventory.read"}, {"role.manage", "user.manage"}, {"reports"}],
    )
    def test_universal_wildcard_allows_anything(self, required):
        assert has_permission(required, {"*"}) is True

    @pytest.mark.parametrize("granted", [set(), {"inventory.read"}, {"*"}])
    def test_empty_requirement_always_allows(self, granted):
        assert has_permission(set(), granted) is True

    def test_any_required_permission_suffices(self):
        assert has_permission({"user.manage", "inventory.read"}, {"inventory.read"}) is True

    def test_dotless_permissions_match_exactly(self):
        assert has_permission({"reports"}, {"reports"}) is True
        assert has_permission({"reports"}, {"reports.*"}) is False

    def test_matching_is_case_sensitive(self):
        assert has_permission({"Inventory.Read"}, {"inventory.read"}) is False
        assert has_permission({"inventory.read"}, {"INVENTORY.*"}) is False

    def test_no_grants_denies(self):
        assert has_permission({"inventory.read"}, set()) is False
