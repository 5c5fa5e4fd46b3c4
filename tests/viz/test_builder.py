"""Tests for building the class/node layout hierarchy."""

import pytest

from egraph_visualizer import parse
from egraph_visualizer.viz import options as opts
from egraph_visualizer.viz.builder import HIDDEN_LABEL, build_layout_graph
from egraph_visualizer.viz.colors import assign_colors
from egraph_visualizer.viz.hierarchy import ROOT_ID, ClassContainer, LayoutGraph, LayoutPort, LeafNode
from egraph_visualizer.viz.measure import Size
from egraph_visualizer.viz.visibility import Focus, reduce_visibility

# Both products are roots of equal height, so only a focus on their class
# shows every term
PRODUCTS = Focus.on_class("prod")


def build(egraph, **kwargs):
    budget = kwargs.pop("budget", 500)
    focus = kwargs.pop("focus", None)
    view = reduce_visibility(egraph, focus=focus, budget=budget)
    return build_layout_graph(egraph, view, assign_colors(egraph), **kwargs)


def _port_ids(ports):
    return [p.id for p in ports]


class TestBasicEdge:
    def test_one_container_per_class(self, basic_egraph):
        graph = build(basic_egraph)
        assert graph.container_ids() == ["class-c1", "class-c2"]

    def test_split_into_inner_and_outer(self, basic_egraph):
        graph = build(basic_egraph)
        c1 = graph.container("class-c1")

        assert [e.id for e in graph.edges] == ["edge-outer-n1-0"]
        assert [e.id for e in c1.edges] == ["edge-inner-n1-0"]

        inner, outer = c1.edges[0], graph.edges[0]
        assert inner.correlation_id == outer.correlation_id == "n1-0"
        assert inner.sources == ("port-node-n1-0",)
        assert inner.targets == ("port-class-outgoing-n1-0",)
        assert outer.sources == ("port-class-outgoing-n1-0",)
        assert outer.targets == ("port-class-incoming-n1-0",)
        assert outer.source_node == "node-n1"
        assert outer.target_node == "class-c2"

    def test_class_ports(self, basic_egraph):
        graph = build(basic_egraph)
        assert _port_ids(graph.container("class-c1").ports) == ["port-class-outgoing-n1-0"]
        assert _port_ids(graph.container("class-c2").ports) == ["port-class-incoming-n1-0"]

    def test_no_self_loops(self, basic_egraph):
        graph = build(basic_egraph)
        assert not any(edge.id.startswith("edge-self-") for _, edge in graph.iter_edges())

    def test_leaves(self, basic_egraph):
        graph = build(basic_egraph)
        leaf = graph.container("class-c1").children[0]
        assert leaf.id == "node-n1"
        assert leaf.label == "add"
        assert leaf.hidden is False
        assert leaf.options == opts.NODE_OPTIONS


class TestSelfLoop:
    def test_single_class_scoped_edge(self, self_loop_egraph):
        graph = build(self_loop_egraph)
        assert graph.container_ids() == ["class-c1"]
        assert graph.edges == ()

        (edge,) = graph.container("class-c1").edges
        assert edge.id == "edge-self-n1-0"
        assert edge.targets == ("port-class-incoming-n1-0",)

    def test_self_loop_has_no_outgoing_port(self, self_loop_egraph):
        graph = build(self_loop_egraph)
        assert _port_ids(graph.container("class-c1").ports) == ["port-class-incoming-n1-0"]

    def test_merged_self_loop_targets_class(self, self_loop_egraph):
        graph = build(self_loop_egraph, merge_edges=True)
        (edge,) = graph.container("class-c1").edges
        assert edge.targets == ("class-c1",)


class TestPorts:
    def test_port_index_reversed(self, typed_egraph):
        graph = build(typed_egraph, focus=PRODUCTS)
        mul = graph.container("class-prod").children[0]
        assert _port_ids(mul.ports) == ["port-node-mul-0", "port-node-mul-1"]
        assert [p.options[opts.PORT_INDEX_KEY] for p in mul.ports] == ["1", "0"]
        assert all(p.options[opts.PORT_SIDE_KEY] == "SOUTH" for p in mul.ports)

    def test_incoming_ports_in_reference_order(self, typed_egraph):
        graph = build(typed_egraph, focus=PRODUCTS)
        assert _port_ids(graph.container("class-sum").ports)[:2] == [
            "port-class-incoming-mul-0",
            "port-class-incoming-shl-0",
        ]

    def test_merge_edges_targets_class(self, typed_egraph):
        graph = build(typed_egraph, merge_edges=True, focus=PRODUCTS)
        assert all(p.id.startswith("port-class-outgoing-") for p in graph.container("class-sum").ports)
        outer = {e.id: e for e in graph.edges}
        assert outer["edge-outer-mul-0"].targets == ("class-sum",)


class TestUnsplit:
    def test_one_root_edge_per_reference(self, basic_egraph):
        graph = build(basic_egraph, split_edges=False)
        (edge,) = graph.edges
        assert edge.id == "edge-root-n1-0"
        assert edge.sources == ("port-node-n1-0",)
        assert edge.targets == ("port-class-incoming-n1-0",)
        assert graph.container("class-c1").edges == ()
        assert graph.container("class-c1").ports == ()

    def test_edge_ids_do_not_collide_with_self_loops(self):
        egraph = parse({
            "nodes": {
                "self-x": {"op": "g", "children": ["y", "x"], "eclass": "d"},
                "x": {"op": "f", "children": ["x"], "eclass": "c"},
                "y": {"op": "y", "eclass": "e"},
            }
        })
        ids = [edge.id for _, edge in build(egraph, split_edges=False).iter_edges()]
        assert sorted(ids) == ["edge-root-self-x-0", "edge-root-self-x-1", "edge-self-x-0"]

    def test_self_loops_stay_in_class(self, self_loop_egraph):
        graph = build(self_loop_egraph, split_edges=False)
        assert graph.edges == ()
        assert len(graph.container("class-c1").edges) == 1


class TestPlaceholders:
    def test_hidden_node_has_marker_label_and_no_edges(self, chain_egraph):
        graph = build(chain_egraph, budget=5)
        leaf = graph.container("class-c7").children[0]
        assert leaf.hidden is True
        assert leaf.label == HIDDEN_LABEL
        assert leaf.ports == ()
        assert graph.container("class-c7").edges == ()

    def test_edges_only_from_visible_nodes(self, chain_egraph):
        graph = build(chain_egraph, budget=5)
        assert [e.correlation_id for e in graph.edges] == ["n0-0", "n1-0", "n2-0", "n3-0", "n4-0"]

    def test_no_incoming_port_for_placeholder_references(self, chain_egraph):
        graph = build(chain_egraph, budget=5)
        assert graph.container("class-c6").ports == ()
        assert _port_ids(graph.container("class-c5").ports) == ["port-class-incoming-n4-0"]


class TestSizingAndOptions:
    def test_measure_callback(self, basic_egraph):
        graph = build(basic_egraph, measure_text=lambda text: Size(len(text) * 10, 20))
        leaf = graph.container("class-c2").children[0]
        assert (leaf.width, leaf.height) == (40, 20)

    def test_measure_callback_may_return_dict(self, basic_egraph):
        graph = build(basic_egraph, measure_text=lambda text: {"width": 5, "height": 6})
        leaf = graph.container("class-c2").children[0]
        assert (leaf.width, leaf.height) == (5.0, 6.0)

    def test_aspect_ratio(self, basic_egraph):
        graph = build(basic_egraph, aspect_ratio=1.5)
        assert graph.options[opts.ASPECT_RATIO_KEY] == 1.5
        assert graph.options["elk.algorithm"] == "layered"

    def test_presets_not_mutated(self, basic_egraph):
        build(basic_egraph, aspect_ratio=2.0)
        assert opts.ASPECT_RATIO_KEY not in opts.ROOT_OPTIONS

    def test_class_colors(self, typed_egraph):
        graph = build(typed_egraph, focus=PRODUCTS)
        colors = assign_colors(typed_egraph)
        assert graph.container("class-k1").color == colors["Const"]

    def test_untyped_class_has_no_color(self, basic_egraph):
        assert build(basic_egraph).container("class-c1").color is None


class TestToElk:
    def test_shape(self, basic_egraph):
        elk = build(basic_egraph).to_elk()
        assert elk["id"] == ROOT_ID
        assert [c["id"] for c in elk["children"]] == ["class-c1", "class-c2"]
        leaf = elk["children"][0]["children"][0]
        assert leaf["data"] == {"id": "n1", "label": "add", "hidden": False}
        assert leaf["labels"] == [{"text": "add"}]
        assert "x" not in leaf
        edge = elk["edges"][0]
        assert edge["correlationId"] == "n1-0"
        assert edge["sourceNode"] == "node-n1"
        assert edge["targetNode"] == "class-c2"

    def test_every_port_is_unique(self, typed_egraph):
        elk = build(typed_egraph, focus=PRODUCTS).to_elk()
        ports = [
            port["id"]
            for container in elk["children"]
            for element in [container, *container["children"]]
            for port in element["ports"]
        ]
        assert len(ports) == len(set(ports))


def test_missing_target_container_is_a_defect(basic_egraph):
    view = reduce_visibility(basic_egraph)
    broken = type(view)(
        classes={"c1": ("n1",)},
        hidden=frozenset(),
        pruned=(),
        total_count=2,
    )
    with pytest.raises(KeyError, match="missing container"):
        build_layout_graph(basic_egraph, broken, {})


def test_repeated_child_gets_one_port_per_reference():
    egraph = parse({
        "nodes": {
            "a": {"op": "f", "children": ["b", "b"], "eclass": "c"},
            "b": {"op": "x", "eclass": "d"},
        }
    })
    graph = build(egraph)
    assert _port_ids(graph.container("class-d").ports) == [
        "port-class-incoming-a-0",
        "port-class-incoming-a-1",
    ]


@pytest.mark.parametrize(
    "element",
    [
        LayoutPort("port-node-n1-0"),
        LeafNode("node-n1", "n1", "add", 10, 10),
        ClassContainer("class-c1", "c1", None),
        LayoutGraph(),
    ],
    ids=lambda element: type(element).__name__,
)
def test_default_options_are_empty_and_read_only(element):
    assert dict(element.options) == {}
    with pytest.raises(TypeError):
        element.options["elk.direction"] = "UP"
