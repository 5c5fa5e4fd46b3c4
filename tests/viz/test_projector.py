"""Tests for projecting the laid-out hierarchy to flat nodes and edges."""

from egraph_visualizer import parse
from egraph_visualizer.viz.builder import build_layout_graph
from egraph_visualizer.viz.colors import assign_colors
from egraph_visualizer.viz.projector import edge_lookups, to_flow_edges, to_flow_nodes
from egraph_visualizer.viz.visibility import Focus, reduce_visibility

# Both products are roots of equal height, so only a focus on their class
# shows every term
PRODUCTS = Focus.on_class("prod")


def build(egraph, **kwargs):
    budget = kwargs.pop("budget", 500)
    focus = kwargs.pop("focus", None)
    view = reduce_visibility(egraph, focus=focus, budget=budget)
    return build_layout_graph(egraph, view, assign_colors(egraph), **kwargs)


def _second_class_points_at_first():
    # cb is laid out second, so its container sits at x=200 in the fake engine
    return parse({
        "nodes": {
            "x": {"op": "x", "eclass": "ca"},
            "f": {"op": "f", "children": ["x"], "eclass": "cb"},
        }
    })


class TestFlowNodes:
    def test_classes_then_members(self, typed_egraph, lay_out):
        nodes = to_flow_nodes(lay_out(build(typed_egraph, focus=PRODUCTS)))
        assert [n["id"] for n in nodes[:3]] == ["class-prod", "node-mul", "node-shl"]

    def test_members_are_relative_to_their_class(self, basic_egraph, lay_out):
        nodes = {n["id"]: n for n in to_flow_nodes(lay_out(build(basic_egraph)))}
        assert nodes["class-c2"]["position"] == {"x": 200.0, "y": 0.0}
        assert nodes["node-n2"]["parentId"] == "class-c2"
        assert nodes["node-n2"]["position"] == {"x": 10.0, "y": 10.0}

    def test_data(self, typed_egraph, lay_out):
        nodes = {n["id"]: n for n in to_flow_nodes(lay_out(build(typed_egraph, focus=PRODUCTS)))}
        assert nodes["class-k1"]["type"] == "class"
        assert nodes["class-k1"]["data"] == {"id": "k1", "color": assign_colors(typed_egraph)["Const"]}
        assert nodes["node-one"]["type"] == "node"
        assert nodes["node-one"]["data"] == {"id": "one", "label": "1", "hidden": False}

    def test_placeholders_are_flagged(self, chain_egraph, lay_out):
        nodes = {n["id"]: n for n in to_flow_nodes(lay_out(build(chain_egraph, budget=5)))}
        assert nodes["node-n9"]["data"]["hidden"] is True
        assert nodes["node-n4"]["data"]["hidden"] is False


class TestFlowEdges:
    def test_one_edge_per_reference(self, typed_egraph, lay_out):
        edges = to_flow_edges(lay_out(build(typed_egraph, focus=PRODUCTS)))
        assert sorted(e["id"] for e in edges) == ["add-0", "add-1", "mul-0", "mul-1", "shl-0", "shl-1"]

    def test_endpoints(self, basic_egraph, lay_out):
        (edge,) = to_flow_edges(lay_out(build(basic_egraph)))
        assert edge["type"] == "edge"
        assert edge["source"] == "node-n1"
        assert edge["target"] == "class-c2"

    def test_split_edge_is_recombined_in_absolute_space(self, lay_out):
        (edge,) = to_flow_edges(lay_out(build(_second_class_points_at_first())))
        # inner (10,30)->(90,60) offset by the class at (200,0); outer minus its start point
        assert edge["data"]["points"] == [
            {"x": 210.0, "y": 30.0},
            {"x": 290.0, "y": 60.0},
            {"x": 300.0, "y": 0.0},
        ]

    def test_unsplit_edge_uses_root_route(self, lay_out):
        (edge,) = to_flow_edges(lay_out(build(_second_class_points_at_first(), split_edges=False)))
        assert edge["data"]["points"] == [{"x": 90.0, "y": 100.0}, {"x": 300.0, "y": 0.0}]

    def test_self_loop(self, self_loop_egraph, lay_out):
        (edge,) = to_flow_edges(lay_out(build(self_loop_egraph)))
        assert edge["id"] == "n1-0"
        assert edge["source"] == "node-n1"
        assert edge["target"] == "class-c1"

    def test_endpoints_exist(self, typed_egraph, chain_egraph, lay_out):
        for egraph, budget in [(typed_egraph, 500), (chain_egraph, 4)]:
            layout = lay_out(build(egraph, budget=budget))
            node_ids = {n["id"] for n in to_flow_nodes(layout)}
            for edge in to_flow_edges(layout):
                assert edge["source"] in node_ids
                assert edge["target"] in node_ids


class TestEdgeLookups:
    def test_lookups(self):
        edges = [
            {"id": "e1", "source": "a", "target": "b"},
            {"id": "e2", "source": "a", "target": "c"},
            {"id": "e3", "source": "c", "target": "c"},
        ]
        node_to_edges, edge_to_nodes = edge_lookups(edges)
        assert node_to_edges == {"a": ["e1", "e2"], "b": ["e1"], "c": ["e2", "e3"]}
        assert edge_to_nodes["e2"] == ("a", "c")
