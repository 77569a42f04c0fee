"""Tests for authorization decisions."""

import pytest

from rolegraph.core.rbac.checker import PermissionChecker, ResolvedUser, can
from rolegraph.core.rbac.permissions import Operation


PERMISSIONS = [
    {"id": "p1", "name": "invoice", "operation": "read"},
    {"id": "p2", "name": "invoice", "operation": "update"},
    {"id": "p3", "name": "report", "operation": "none"},
]


class TestPermissionChecker:
    """Test the decision truth table."""

    @pytest.fixture
    def checker(self):
        return PermissionChecker(PERMISSIONS)

    @pytest.mark.parametrize("operation,name,expected", [
        ("read", "invoice", True),
        ("update", "invoice", True),
        ("delete", "invoice", False),
        ("none", "report", True),
        ("read", "report", False),
        ("read", "unknown", False),
        ("", "invoice", False),
        (None, "invoice", False),
        ("read", "", False),
        ("read", None, False),
    ])
    def test_can(self, checker, operation, name, expected):
        """Test can for held, missing and empty arguments."""
        assert checker.can(operation, name) is expected

    def test_can_with_enum(self, checker):
        """Test that Operation members are accepted."""
        assert checker.can(Operation.READ, "invoice")
        assert not checker.can(Operation.SCAN, "invoice")

    def test_empty_permission_set(self):
        """Test that an empty set denies everything."""
        checker = PermissionChecker([])
        assert not checker.can("read", "invoice")
        assert checker.permission_names == []

    def test_none_permission_set(self):
        """Test that a missing set denies everything."""
        assert not PermissionChecker(None).can("read", "invoice")

    def test_can_any_and_all(self, checker):
        """Test combined checks."""
        assert checker.can_any([("delete", "invoice"), ("read", "invoice")])
        assert not checker.can_any([("delete", "invoice"), ("scan", "invoice")])
        assert checker.can_all([("read", "invoice"), ("update", "invoice")])
        assert not checker.can_all([("read", "invoice"), ("delete", "invoice")])

    def test_operations_for(self, checker):
        """Test listing held operations per name."""
        assert checker.operations_for("invoice") == {"read", "update"}
        assert checker.operations_for("missing") == set()

    def test_permission_names(self, checker):
        """Test the sorted list of names."""
        assert checker.permission_names == ["invoice", "report"]

    def test_accepts_objects(self):
        """Test that records with attributes work as well as dicts."""

        class Record:
            def __init__(self, name, operation):
                self.name = name
                self.operation = operation

        checker = PermissionChecker([Record("invoice", "scan")])
        assert checker.can("scan", "invoice")

    def test_module_level_can(self):
        """Test the one-off helper."""
        assert can(PERMISSIONS, "read", "invoice")
        assert not can(PERMISSIONS, "create", "invoice")


class TestResolvedUser:
    """Test the resolved user view."""

    @pytest.fixture
    def user(self):
        return ResolvedUser(
            user={"id": "u1", "user_name": "alice", "roles": ["r1"]},
            permissions=PERMISSIONS,
            roles=[{"id": "r1", "name": "accountant"}, {"id": "r2", "name": "clerk"}],
        )

    def test_identity(self, user):
        """Test id and user_name passthrough."""
        assert user.id == "u1"
        assert user.user_name == "alice"

    def test_can(self, user):
        """Test that can delegates to the checker."""
        assert user.can("read", "invoice")
        assert not user.can("delete", "invoice")
        assert user.checker.can("update", "invoice")

    def test_has_role(self, user):
        """Test role membership including inherited roles."""
        assert user.has_role("accountant")
        assert user.has_role("clerk")
        assert not user.has_role("admin")
        assert not user.has_role("")

    def test_to_dict(self, user):
        """Test that the plain view carries effective sets."""
        data = user.to_dict()
        assert data["user_name"] == "alice"
        assert [p["id"] for p in data["permissions"]] == ["p1", "p2", "p3"]
        assert [r["name"] for r in data["roles"]] == ["accountant", "clerk"]

    def test_defaults(self):
        """Test a user without roles."""
        user = ResolvedUser(user={"id": "u2", "user_name": "bob"})
        assert not user.can("read", "invoice")
        assert user.diagnostics == []
