"""Shared fixtures: sample egraphs and an in-process layout engine.

The fake engine stands in for an ELK subprocess. It is deterministic,
honors seeded ``x``/``y`` positions the way the interactive strategies do,
and fills in every piece of geometry ``apply_geometry`` reads back.
"""

import asyncio
import copy

import pytest

from egraph_visualizer import parse
from egraph_visualizer.viz.hierarchy import apply_geometry

# =============================================================================
# Fake layout engines
# =============================================================================

CLASS_WIDTH = 180
CLASS_GAP = 20
NODE_GAP = 40


def _section(start, end):
    return [{"startPoint": {"x": start[0], "y": start[1]}, "endPoint": {"x": end[0], "y": end[1]}}]


def place(graph):
    """Assign positions in place: classes in a row, e-nodes in a column."""
    for i, container in enumerate(graph.get("children", [])):
        container.setdefault("x", i * (CLASS_WIDTH + CLASS_GAP))
        container.setdefault("y", 0)
        container["width"] = CLASS_WIDTH
        container["height"] = 20 + NODE_GAP * len(container["children"])

        for j, leaf in enumerate(container["children"]):
            leaf.setdefault("x", 10)
            leaf.setdefault("y", 10 + NODE_GAP * j)
            for port in leaf["ports"]:
                port.setdefault("x", 0)
                port.setdefault("y", leaf["height"])

        for port in container["ports"]:
            port.setdefault("x", CLASS_WIDTH / 2)
            port.setdefault("y", 0)

        for edge in container["edges"]:
            edge["sections"] = _section((10, 30), (90, container["height"]))

    for edge in graph.get("edges", []):
        edge["sections"] = _section((90, 100), (300, 0))

    graph["width"] = max(1, len(graph.get("children", []))) * (CLASS_WIDTH + CLASS_GAP)
    graph["height"] = 400
    return graph


class FakeLayoutEngine:
    """Synchronous engine; records every graph it was given."""

    def __init__(self):
        self.calls = []

    def layout(self, graph):
        self.calls.append(copy.deepcopy(graph))
        return place(copy.deepcopy(graph))


class BlockingLayoutEngine:
    """Async engine that never finishes on its own."""

    def __init__(self):
        self.started = asyncio.Event()
        self.terminated = False

    async def alayout(self, graph):
        self.started.set()
        await asyncio.Event().wait()
        return graph

    def terminate(self):
        self.terminated = True


class FailingLayoutEngine:
    def layout(self, graph):
        raise RuntimeError("elk exploded")


@pytest.fixture
def engine():
    return FakeLayoutEngine()


@pytest.fixture
def blocking_engine():
    return BlockingLayoutEngine()


@pytest.fixture
def failing_engine():
    return FailingLayoutEngine()


# =============================================================================
# Sample egraphs
# =============================================================================


@pytest.fixture
def basic_egraph():
    """n1 in c1 points at n2 in c2."""
    return parse({
        "nodes": {
            "n1": {"op": "add", "children": ["n2"], "eclass": "c1"},
            "n2": {"op": "lit1", "children": [], "eclass": "c2"},
        }
    })


@pytest.fixture
def self_loop_egraph():
    return parse({"nodes": {"n1": {"op": "f", "children": ["n1"], "eclass": "c1"}}})


def make_chain(length):
    """One node per class, each pointing at the next."""
    nodes = {}
    for i in range(length):
        children = [f"n{i + 1}"] if i + 1 < length else []
        nodes[f"n{i}"] = {"op": f"op{i}", "children": children, "eclass": f"c{i}"}
    return parse({"nodes": nodes})


@pytest.fixture
def chain():
    return make_chain


@pytest.fixture
def chain_egraph():
    return make_chain(10)


@pytest.fixture
def typed_egraph():
    """(a + b) * 2 with typed classes and an equivalent rewrite of the product."""
    return parse({
        "nodes": {
            "mul": {"op": "*", "children": ["add", "two"], "eclass": "prod"},
            "shl": {"op": "<<", "children": ["add", "one"], "eclass": "prod"},
            "add": {"op": "+", "children": ["a", "b"], "eclass": "sum"},
            "a": {"op": "a", "eclass": "va"},
            "b": {"op": "b", "eclass": "vb"},
            "two": {"op": "2", "eclass": "k2"},
            "one": {"op": "1", "eclass": "k1"},
        },
        "root_eclasses": ["prod"],
        "class_data": {
            "prod": {"type": "i64"},
            "sum": {"type": "i64"},
            "va": {"type": "i64"},
            "vb": {"type": "i64"},
            "k2": {"type": "Const"},
            "k1": {"type": "Const"},
        },
    })


@pytest.fixture
def lay_out():
    """Apply fake-engine geometry to a built LayoutGraph."""

    def run(graph):
        return apply_geometry(graph, place(graph.to_elk()))

    return run
