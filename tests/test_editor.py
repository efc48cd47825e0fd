"""Tests for topology mutation operations and the editor API."""

import random

import pytest

from redoroute.analysis.validation import MULTIPLE_SOURCES, NO_REDO
from redoroute.config import TopologyLimits
from redoroute.editor import TopologyEditor
from redoroute.model.snapshot import SnapshotError
from redoroute.model.types import NodeKind, PromotionMode, Role, TransportMode


@pytest.fixture
def editor():
    return TopologyEditor()


@pytest.fixture
def site(editor):
    """Primary, standby, relay and appliance with no routes."""
    primary = editor.add_node(NodeKind.DATABASE)
    standby = editor.add_node(NodeKind.DATABASE)
    relay = editor.add_node(NodeKind.RELAY)
    appliance = editor.add_node(NodeKind.APPLIANCE)
    return primary, standby, relay, appliance


def assert_invariants(editor):
    topology = editor.topology
    primaries = [n for n in topology.nodes.values() if n.role is Role.PRIMARY]
    assert len(primaries) <= 1
    if any(n.kind is NodeKind.DATABASE for n in topology.nodes.values()):
        assert len(primaries) == 1
    assert len(topology.nodes) <= editor.limits.max_nodes
    for route in topology.routes.values():
        assert route.source != route.target
        assert route.source in topology.nodes
        assert route.target in topology.nodes
        assert topology.nodes[route.source].kind is not NodeKind.APPLIANCE
        # a route never feeds the primary of its own scenario
        assert route.target_name != route.scenario_primary


class TestAddNode:
    def test_first_database_becomes_primary(self, editor):
        first = editor.add_node(NodeKind.DATABASE)
        second = editor.add_node("database")
        assert first.role is Role.PRIMARY
        assert second.role is Role.STANDBY
        assert editor.current_primary() is first

    def test_ids_and_default_names(self, editor, site):
        primary, standby, relay, appliance = site
        assert [n.id for n in site] == ["1", "2", "3", "4"]
        assert primary.unique_name == "DATABASE_0001"
        assert relay.unique_name == "RELAY_0003"
        assert appliance.unique_name == "APPLIANCE_0004"
        assert relay.role is None and appliance.role is None

    def test_layout_is_stored(self, editor):
        node = editor.add_node(NodeKind.RELAY, layout={"x": 10, "y": 20})
        assert editor.topology.nodes[node.id].layout == {"x": 10, "y": 20}

    def test_unknown_kind_raises(self, editor):
        with pytest.raises(ValueError):
            editor.add_node("FAR_SYNC")

    def test_ids_are_not_reused_after_delete(self, editor, site):
        editor.delete_nodes(["4"])
        assert editor.add_node(NodeKind.RELAY).id == "5"

    def test_cap_enforced(self, editor):
        for _ in range(127):
            assert editor.add_node(NodeKind.RELAY) is not None
        assert not editor.can_add_node()
        before = editor.export_snapshot()
        assert editor.add_node(NodeKind.RELAY) is None
        assert editor.add_standby() is None
        assert editor.export_snapshot() == before
        assert len(editor.topology.nodes) == 127

    def test_custom_cap(self):
        editor = TopologyEditor(limits=TopologyLimits(max_nodes=2))
        editor.add_node(NodeKind.DATABASE)
        editor.add_node(NodeKind.DATABASE)
        assert editor.add_node(NodeKind.DATABASE) is None
        editor.delete_nodes(["2"])
        assert editor.can_add_node()


class TestAddStandby:
    def test_standby_is_connected_from_primary(self, editor):
        primary = editor.add_node(NodeKind.DATABASE)
        standby = editor.add_standby()
        assert standby.role is Role.STANDBY
        (route,) = editor.topology.routes.values()
        assert (route.source, route.target) == (primary.id, standby.id)
        assert route.scenario_primary == primary.unique_name
        assert route.target_name == standby.unique_name

    def test_no_primary_is_a_no_op(self, editor):
        editor.add_node(NodeKind.RELAY)
        assert editor.add_standby() is None
        assert len(editor.topology.nodes) == 1


class TestConnect:
    def test_defaults(self, editor, site):
        primary, standby, _, _ = site
        route = editor.connect(primary.id, standby.id)
        assert route.transport_mode is TransportMode.ASYNC
        assert route.priority == 1
        assert route.scenario_primary == primary.unique_name
        assert route.alternate_target_name is None
        assert route.target_name == standby.unique_name
        assert editor.topology.routes[route.id] is route

    def test_scenario_follows_current_primary(self, editor, site):
        primary, standby, relay, _ = site
        editor.make_primary(standby.id)
        route = editor.connect(relay.id, primary.id)
        assert route.scenario_primary == standby.unique_name

    @pytest.mark.parametrize(
        "source_index,target_index",
        [
            (1, 1),  # self-route
            (3, 1),  # appliance source
            (1, 0),  # primary target
            (2, 0),  # primary target
        ],
    )
    def test_illegal_connections_are_silently_rejected(
        self, editor, site, source_index, target_index
    ):
        before = editor.export_snapshot()
        route = editor.connect(site[source_index].id, site[target_index].id)
        assert route is None
        assert editor.export_snapshot() == before

    def test_unknown_endpoints_rejected(self, editor, site):
        assert editor.connect("1", "99") is None
        assert editor.connect("99", "1") is None

    def test_no_primary_rejects(self, editor):
        a = editor.add_node(NodeKind.RELAY)
        b = editor.add_node(NodeKind.APPLIANCE)
        assert editor.connect(a.id, b.id) is None
        assert editor.topology.routes == {}

    def test_custom_default_transport_mode(self):
        editor = TopologyEditor(
            limits=TopologyLimits(default_transport_mode=TransportMode.SYNC)
        )
        primary = editor.add_node(NodeKind.DATABASE)
        standby = editor.add_node(NodeKind.DATABASE)
        route = editor.connect(primary.id, standby.id)
        assert route.transport_mode is TransportMode.SYNC


class TestDelete:
    def test_delete_cascades_routes(self, editor, site):
        primary, standby, relay, appliance = site
        editor.connect(primary.id, relay.id)
        editor.connect(relay.id, standby.id)
        keep = editor.connect(primary.id, appliance.id)

        editor.delete_nodes([relay.id])

        assert relay.id not in editor.topology.nodes
        assert list(editor.topology.routes) == [keep.id]

    def test_deleting_primary_promotes_earliest_database(self, editor):
        for _ in range(11):
            editor.add_node(NodeKind.DATABASE)
        # "10" sorts before "2" as text; creation order must win
        editor.delete_nodes(["1", "3", "4"])
        assert editor.current_primary().id == "2"
        editor.delete_nodes(["2"])
        assert editor.current_primary().id == "5"

    def test_deleting_standby_keeps_primary(self, editor, site):
        editor.delete_nodes([site[1].id])
        assert editor.current_primary() is site[0]

    def test_deleting_all_databases_leaves_no_primary(self, editor, site):
        editor.delete_nodes([site[0].id, site[1].id])
        assert editor.current_primary() is None
        assert_invariants(editor)

    def test_unknown_ids_ignored(self, editor, site):
        before = editor.export_snapshot()
        editor.delete_nodes(["99"])
        editor.delete_routes(["nope"])
        assert editor.export_snapshot() == before

    def test_delete_routes(self, editor, site):
        primary, standby, relay, _ = site
        first = editor.connect(primary.id, standby.id)
        second = editor.connect(primary.id, relay.id)
        editor.delete_routes([first.id])
        assert list(editor.topology.routes) == [second.id]


class TestMakePrimary:
    def test_role_swap_leaves_routes_alone(self, editor, site):
        primary, standby, relay, _ = site
        editor.connect(primary.id, standby.id)
        editor.connect(primary.id, relay.id)
        before = editor.export_snapshot()["routes"]

        editor.make_primary(standby.id)

        assert standby.role is Role.PRIMARY
        assert primary.role is Role.STANDBY
        assert editor.export_snapshot()["routes"] == before
        assert editor.project_scenario() == []

    def test_existing_scenario_routes_become_active(self, editor, site):
        primary, standby, relay, _ = site
        editor.connect(primary.id, relay.id)
        editor.make_primary(standby.id)
        route = editor.connect(standby.id, primary.id)
        editor.make_primary(primary.id)
        editor.make_primary(standby.id)
        assert [p.id for p in editor.project_scenario()] == [route.id]

    @pytest.mark.parametrize("index", [0, 2, 3])
    def test_non_standby_targets_are_ignored(self, editor, site, index):
        editor.make_primary(site[index].id)
        assert editor.current_primary() is site[0]

    def test_unknown_node_ignored(self, editor, site):
        editor.make_primary("99")
        assert editor.current_primary() is site[0]

    def test_reverse_routes_mode(self, editor, site):
        primary, standby, relay, appliance = site
        editor.connect(primary.id, standby.id)
        to_relay = editor.connect(primary.id, relay.id)
        editor.update_route(to_relay.id, {"transportMode": "SYNC"})
        editor.connect(relay.id, appliance.id)

        editor.make_primary(standby.id, mode=PromotionMode.REVERSE_ROUTES)

        mirrored = [
            (r.source, r.target, r.transport_mode)
            for r in editor.topology.routes.values()
            if r.scenario_primary == standby.unique_name
        ]
        assert mirrored == [
            (standby.id, primary.id, TransportMode.ASYNC),
            (standby.id, relay.id, TransportMode.SYNC),
        ]
        assert_invariants(editor)

    def test_reverse_routes_skips_existing_mirrors(self, editor, site):
        primary, standby, relay, _ = site
        editor.connect(primary.id, relay.id)
        editor.make_primary(standby.id)
        editor.connect(standby.id, relay.id)
        editor.make_primary(primary.id)

        editor.make_primary(standby.id, mode="reverse_routes")

        in_scenario = [
            (r.source, r.target)
            for r in editor.topology.routes.values()
            if r.scenario_primary == standby.unique_name
        ]
        assert in_scenario == [(standby.id, relay.id)]


class TestUpdates:
    def test_rename_keeps_cached_route_names(self, editor, site):
        primary, standby, _, _ = site
        route = editor.connect(primary.id, standby.id)
        editor.update_node(standby.id, {"uniqueName": "ORCL_SITE2"})
        editor.update_node(primary.id, {"unique_name": "ORCL_SITE1"})

        assert standby.unique_name == "ORCL_SITE2"
        assert route.target_name == "DATABASE_0002"
        assert route.scenario_primary == "DATABASE_0001"
        # The renamed primary no longer matches its routes' scenario
        assert editor.project_scenario() == []

    def test_update_node_rejects_role_and_unknown_keys(self, editor, site):
        with pytest.raises(ValueError, match="make_primary"):
            editor.update_node(site[1].id, {"role": "PRIMARY"})
        with pytest.raises(ValueError, match="not editable"):
            editor.update_node(site[1].id, {"kind": "RELAY"})

    def test_update_node_is_atomic(self, editor, site):
        with pytest.raises(ValueError):
            editor.update_node(site[1].id, {"uniqueName": "NEW", "uniqueName ": "x"})
        with pytest.raises(ValueError):
            editor.update_node(site[1].id, {"layout": {"x": 1}, "uniqueName": "  "})
        assert site[1].unique_name == "DATABASE_0002"
        assert site[1].layout is None

    def test_update_route_fields(self, editor, site):
        primary, standby, relay, _ = site
        editor.connect(primary.id, relay.id)
        route = editor.connect(primary.id, standby.id)
        editor.update_route(
            route.id,
            {
                "transportMode": "fastsync",
                "priority": 2,
                "alternateTargetName": "RELAY_0003",
            },
        )
        assert route.transport_mode is TransportMode.FASTSYNC
        assert route.priority == 2
        assert route.alternate_target_name == "RELAY_0003"

        editor.update_route(route.id, {"alternate_target_name": ""})
        assert route.alternate_target_name is None

    @pytest.mark.parametrize(
        "patch",
        [
            {"priority": 0},
            {"priority": 9},
            {"priority": "2"},
            {"priority": True},
            {"transportMode": "LAZY"},
            {"alternateTargetName": 5},
            {"target": "1"},
            {"scenarioPrimary": "OTHER"},
            {"priority": 3, "targetName": "X"},
        ],
    )
    def test_invalid_route_patches_change_nothing(self, editor, site, patch):
        route = editor.connect(site[0].id, site[1].id)
        before = editor.export_snapshot()
        with pytest.raises(ValueError):
            editor.update_route(route.id, patch)
        assert editor.export_snapshot() == before

    def test_updates_on_unknown_ids_are_no_ops(self, editor, site):
        before = editor.export_snapshot()
        editor.update_node("99", {"uniqueName": "X"})
        editor.update_route("99", {"priority": 2})
        assert editor.export_snapshot() == before


class TestDerivedViews:
    def test_alternate_candidates(self, editor, site):
        primary, standby, relay, appliance = site
        editor.connect(primary.id, relay.id)
        editor.connect(primary.id, appliance.id)
        alternate = editor.connect(primary.id, standby.id)
        assert editor.alternate_candidates(alternate.id) == []

        editor.update_route(alternate.id, {"priority": 2})
        assert editor.alternate_candidates(alternate.id) == [
            "RELAY_0003",
            "APPLIANCE_0004",
        ]
        assert editor.alternate_candidates("missing") == []

    def test_validate_defaults_to_current_scenario(self, editor, site):
        primary, standby, relay, appliance = site
        editor.connect(primary.id, standby.id)
        editor.connect(relay.id, standby.id)
        warnings = editor.validate()
        assert warnings == {
            primary.id: "",
            standby.id: MULTIPLE_SOURCES,
            relay.id: NO_REDO,
            appliance.id: NO_REDO,
        }

    def test_annotated_nodes(self, editor, site):
        editor.connect(site[0].id, site[1].id)
        annotated = {n["id"]: n for n in editor.annotated_nodes()}
        assert annotated[site[1].id]["warning"] == ""
        assert annotated[site[2].id]["warning"] == NO_REDO
        assert annotated[site[0].id]["uniqueName"] == "DATABASE_0001"

    def test_project_scenario_without_primary(self, editor):
        editor.add_node(NodeKind.RELAY)
        assert editor.project_scenario() == []
        assert editor.validate() == {"1": NO_REDO}

    def test_compile_statements(self, editor, site):
        primary, standby, relay, _ = site
        route = editor.connect(primary.id, relay.id)
        editor.update_route(route.id, {"transportMode": "SYNC"})
        alternate = editor.connect(primary.id, standby.id)
        editor.update_route(
            alternate.id, {"priority": 2, "alternateTargetName": relay.unique_name}
        )
        assert editor.compile_statements() == (
            "EDIT DATABASE DATABASE_0001 SET PROPERTY RedoRoutes = "
            "'(DATABASE_0001: (RELAY_0003 SYNC PRIORITY=1, "
            "DATABASE_0002 ASYNC PRIORITY=2))';"
        )


class TestSnapshotsAndReset:
    def test_import_resumes_id_counter(self, editor, site):
        data = editor.export_snapshot()
        other = TopologyEditor()
        other.import_snapshot(data)
        assert other.add_node(NodeKind.RELAY).id == "5"

    def test_import_with_foreign_ids(self, editor):
        editor.import_snapshot(
            {
                "nodes": [
                    {
                        "id": "db-a",
                        "kind": "DATABASE",
                        "uniqueName": "A",
                        "role": "PRIMARY",
                    }
                ],
                "routes": [],
            }
        )
        assert editor.add_node(NodeKind.DATABASE).id == "1"

    def test_import_with_non_ascii_digit_ids(self, editor, site):
        # superscript two passes str.isdigit() but is not a decimal id
        editor.import_snapshot(
            {
                "nodes": [
                    {
                        "id": "a",
                        "kind": "DATABASE",
                        "uniqueName": "A",
                        "role": "PRIMARY",
                    },
                    {
                        "id": "\u00b2",
                        "kind": "DATABASE",
                        "uniqueName": "B",
                        "role": "STANDBY",
                    },
                ],
                "routes": [],
            }
        )
        assert list(editor.topology.nodes) == ["a", "\u00b2"]

        editor.delete_nodes(["a"])
        assert editor.current_primary().id == "\u00b2"
        assert editor.add_node(NodeKind.RELAY).id == "1"

    def test_import_over_node_cap_leaves_store_unchanged(self, editor, site):
        data = editor.export_snapshot()
        small = TopologyEditor(limits=TopologyLimits(max_nodes=3))
        small.add_node(NodeKind.DATABASE)
        before = small.export_snapshot()

        with pytest.raises(SnapshotError, match="at most 3"):
            small.import_snapshot(data)

        assert small.export_snapshot() == before
        assert small.add_node(NodeKind.RELAY).id == "2"

    def test_malformed_import_raises(self, editor, site):
        before = editor.export_snapshot()
        with pytest.raises(SnapshotError):
            editor.import_snapshot({"nodes": []})
        assert editor.export_snapshot() == before

    def test_reset(self, editor, site):
        editor.connect(site[0].id, site[1].id)
        editor.reset()
        assert editor.export_snapshot() == {"nodes": [], "routes": []}
        assert editor.add_node(NodeKind.DATABASE).id == "1"


def test_invariants_hold_under_random_edits():
    """Random edit sequences never break the store invariants."""
    rng = random.Random(7)
    editor = TopologyEditor(limits=TopologyLimits(max_nodes=12))
    kinds = list(NodeKind)
    for _ in range(600):
        ids = list(editor.topology.nodes)
        op = rng.randrange(7)
        if op == 0:
            editor.add_node(rng.choice(kinds))
        elif op == 1:
            editor.add_standby()
        elif op == 2 and ids:
            editor.connect(rng.choice(ids), rng.choice(ids))
        elif op == 3 and ids:
            editor.delete_nodes(rng.sample(ids, k=min(len(ids), rng.randint(1, 2))))
        elif op == 4 and ids:
            mode = rng.choice(list(PromotionMode))
            editor.make_primary(rng.choice(ids), mode=mode)
        elif op == 5 and editor.topology.routes:
            editor.delete_routes([rng.choice(list(editor.topology.routes))])
        elif op == 6 and editor.topology.routes:
            route_id = rng.choice(list(editor.topology.routes))
            editor.update_route(route_id, {"priority": rng.randint(1, 8)})
        assert_invariants(editor)
        editor.validate()
        editor.compile_statements()
