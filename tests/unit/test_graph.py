"""Tests for effective role and permission resolution."""

import logging

import pytest

from rolegraph.core.rbac.graph import DEPTH_LIMIT_EXCEEDED, GraphResolver, Resolution
from tests.fakes import FakeStore, permission, role


def make_store():
    """
    Role graph used by most tests::

        A (p-read)  --inherits-->  B (p-update)  --inherits-->  C (p-delete)
        D (p-read, p-scan)         standalone
        E           --inherits-->  B, D
    """
    return FakeStore(
        roles=[
            role("A", permissions=["p-read"], inherit_roles=["B"]),
            role("B", permissions=["p-update"], inherit_roles=["C"]),
            role("C", permissions=["p-delete"]),
            role("D", permissions=["p-read", "p-scan"]),
            role("E", inherit_roles=["B", "D"]),
        ],
        permissions=[
            permission("p-read", "invoice", "read"),
            permission("p-update", "invoice", "update"),
            permission("p-delete", "invoice", "delete"),
            permission("p-scan", "invoice", "scan"),
        ],
    )


def user(*roles):
    return {"id": "u1", "user_name": "alice", "roles": list(roles)}


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def graph(store):
    return GraphResolver(store)


class TestEffectiveRoles:
    """Test role flattening."""

    async def test_direct_and_inherited(self, graph):
        """Test that one level of inheritance is followed."""
        result = await graph.get_effective_roles(user("A"), populate=False)
        assert sorted(result.ids) == ["A", "B"]

    async def test_no_roles(self, graph, store):
        """Test a user without roles."""
        result = await graph.get_effective_roles(user(), populate=False)
        assert result.items == []
        assert result.diagnostics == []

    async def test_union_has_no_duplicates(self, graph):
        """Test that a role held and inherited appears once."""
        result = await graph.get_effective_roles(user("A", "B", "E"), populate=False)
        assert sorted(result.ids) == ["A", "B", "C", "D", "E"]
        assert len(result.ids) == len(set(result.ids))

    async def test_populated_records(self, graph):
        """Test that populate returns full role records."""
        result = await graph.get_effective_roles(user("A"))
        assert {r["name"] for r in result} == {"A", "B"}

    async def test_dangling_role_ids_are_skipped(self, graph):
        """Test that ids of deleted roles are ignored."""
        result = await graph.get_effective_roles(user("A", "deleted"), populate=False)
        assert sorted(result.ids) == ["A", "B"]

    async def test_order_of_held_roles_is_irrelevant(self, graph):
        """Test that the same roles in another order give the same set."""
        first = await graph.get_effective_roles(user("E", "A"), populate=False)
        second = await graph.get_effective_roles(user("A", "E"), populate=False)
        assert sorted(first.ids) == sorted(second.ids)


class TestDepthLimit:
    """Test bounded inheritance traversal."""

    async def test_second_level_is_not_followed(self, graph):
        """Test that C, inherited by B, is not part of A's effective set."""
        result = await graph.get_effective_roles(user("A"), populate=False)
        assert "C" not in result.ids

    async def test_diagnostic_names_the_cut_role(self, graph):
        """Test that the cut link is reported."""
        result = await graph.get_effective_roles(user("A"), populate=False)
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.code == DEPTH_LIMIT_EXCEEDED
        assert diagnostic.role_id == "B"
        assert diagnostic.role_name == "B"
        assert diagnostic.ignored == ("C",)

    async def test_diagnostic_is_logged(self, graph, caplog):
        """Test that the cut link is logged as a warning."""
        with caplog.at_level(logging.WARNING, logger="rolegraph.graph"):
            await graph.get_effective_roles(user("A"), populate=False)
        assert any("beyond the supported inheritance depth" in r.message for r in caplog.records)

    async def test_diagnostic_when_cut_link_is_already_held(self, graph):
        """Test that a cut link is reported even when its target is held directly."""
        result = await graph.get_effective_roles(user("A", "C"), populate=False)
        assert sorted(result.ids) == ["A", "B", "C"]
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].role_id == "B"
        assert result.diagnostics[0].ignored == ()

    async def test_diagnostic_when_cut_link_points_back(self):
        """Test that a link back to the user's own role is still reported."""
        store = FakeStore(roles=[role("A", inherit_roles=["B"]), role("B", inherit_roles=["A"])])
        result = await GraphResolver(store).get_effective_roles(user("A"), populate=False)
        assert sorted(result.ids) == ["A", "B"]
        assert [(d.code, d.role_id, d.ignored) for d in result.diagnostics] == [
            (DEPTH_LIMIT_EXCEEDED, "B", ()),
        ]

    async def test_no_diagnostic_without_links(self, graph):
        """Test that roles without inheritance at the last hop are not reported."""
        result = await graph.get_effective_roles(user("E"), populate=False)
        assert sorted(result.ids) == ["B", "D", "E"]
        assert [d.role_id for d in result.diagnostics] == ["B"]

    async def test_depth_two(self, store):
        """Test a wider configured depth."""
        graph = GraphResolver(store, max_depth=2)
        result = await graph.get_effective_roles(user("A"), populate=False)
        assert sorted(result.ids) == ["A", "B", "C"]
        assert result.diagnostics == []

    async def test_depth_zero(self, store):
        """Test that depth zero disables inheritance."""
        graph = GraphResolver(store, max_depth=0)
        result = await graph.get_effective_roles(user("A"), populate=False)
        assert result.ids == ["A"]
        assert result.diagnostics[0].ignored == ("B",)

    async def test_cycle_terminates(self):
        """Test that cyclic inheritance within the depth limit does not loop."""
        store = FakeStore(roles=[role("X", inherit_roles=["Y"]), role("Y", inherit_roles=["X"])])
        graph = GraphResolver(store, max_depth=5)
        result = await graph.get_effective_roles(user("X"), populate=False)
        assert sorted(result.ids) == ["X", "Y"]
        assert result.diagnostics == []

    def test_negative_depth_rejected(self, store):
        """Test that a negative depth is refused."""
        with pytest.raises(ValueError):
            GraphResolver(store, max_depth=-1)


class TestEffectivePermissions:
    """Test permission flattening."""

    async def test_union_of_role_permissions(self, graph):
        """Test that inherited permissions are included."""
        result = await graph.get_effective_permissions(user("A"), populate=False)
        assert sorted(result.ids) == ["p-read", "p-update"]

    async def test_permissions_are_deduplicated(self, graph):
        """Test that a permission reachable twice appears once."""
        result = await graph.get_effective_permissions(user("A", "D"), populate=False)
        assert sorted(result.ids) == ["p-read", "p-scan", "p-update"]

    async def test_populated_records(self, graph):
        """Test that populate returns full permission records."""
        result = await graph.get_effective_permissions(user("D"))
        assert {(p["name"], p["operation"]) for p in result} == {("invoice", "read"), ("invoice", "scan")}

    async def test_diagnostics_travel_with_permissions(self, graph):
        """Test that depth diagnostics are also attached to permission results."""
        result = await graph.get_effective_permissions(user("A"), populate=False)
        assert [d.role_id for d in result.diagnostics] == ["B"]

    async def test_store_errors_propagate(self, graph, store):
        """Test that store failures reach the caller unchanged."""
        store.fail_on = "populate"
        with pytest.raises(RuntimeError, match="store unavailable"):
            await graph.get_effective_permissions(user("A"))


class TestRolePermissions:
    """Test resolution for a role on its own."""

    async def test_standalone_role(self, graph, store):
        """Test a role without inheritance."""
        result = await graph.get_permissions(store.tables["role"]["D"], populate=False)
        assert sorted(result.ids) == ["p-read", "p-scan"]
        assert result.diagnostics == []

    async def test_inheriting_role(self, graph, store):
        """Test a role with one level of inheritance."""
        result = await graph.get_permissions(store.tables["role"]["E"], populate=False)
        assert sorted(result.ids) == ["p-read", "p-scan", "p-update"]
        assert [d.role_id for d in result.diagnostics] == ["B"]


class TestResolveUser:
    """Test the combined authorization view."""

    async def test_resolved_user(self, graph):
        """Test that one resolution answers role and permission questions."""
        resolved = await graph.resolve_user(user("A"))
        assert resolved.can("read", "invoice")
        assert resolved.can("update", "invoice")
        assert not resolved.can("delete", "invoice")
        assert resolved.has_role("B")
        assert not resolved.has_role("C")
        assert len(resolved.diagnostics) == 1

    async def test_resolve_users_concurrently(self, graph):
        """Test resolving several independent users."""
        resolved = await graph.resolve_users([user("A"), user("D"), user()])
        assert [r.can("scan", "invoice") for r in resolved] == [False, True, False]

    def test_resolution_helpers(self):
        """Test Resolution len, iteration and ids."""
        result = Resolution(items=[{"id": "x"}, "y"])
        assert len(result) == 2
        assert result.ids == ["x", "y"]
        assert list(result) == [{"id": "x"}, "y"]
