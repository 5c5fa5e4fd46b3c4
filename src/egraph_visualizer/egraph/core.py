"""EGraph model: parsed serialized egraph plus derived indices."""

from __future__ import annotations

import functools
import json
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import networkx as nx

from egraph_visualizer.exceptions import MalformedInputError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


@dataclass(frozen=True)
class ENode:
    """One operator application inside an e-class.

    Attributes:
        op: Operator label shown on the node
        eclass: Id of the owning equivalence class
        children: Ordered child references, each naming another ENode by key
        cost: Numeric cost used by extraction
        subsumed: Whether the node was subsumed by a rewrite
    """

    op: str
    eclass: str
    children: tuple[str, ...] = ()
    cost: float = 0.0
    subsumed: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "op": self.op,
            "children": list(self.children),
            "eclass": self.eclass,
            "cost": self.cost,
        }
        if self.subsumed:
            data["subsumed"] = True
        return data


@dataclass(frozen=True)
class ClassData:
    """Optional per-class data: a type tag and free-form properties."""

    type: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.type is not None:
            data["type"] = self.type
        if self.properties:
            data["properties"] = dict(self.properties)
        return data


class EGraph:
    """An already-saturated egraph, ready to be visualized.

    E-classes are not stored entities: nodes sharing the same ``eclass`` are
    members of one class. The grouping, the node -> class map and the
    per-class incoming edge index are reified once at construction so no
    downstream stage has to scan the node table again.

    Attributes:
        nodes: Map of node id -> ENode
        root_eclasses: Ids of the root classes, if the serializer provided any
        class_data: Map of class id -> ClassData
        properties: Global properties
        node_to_class: Map of node id -> class id
        class_to_nodes: Map of class id -> member node ids (insertion order)
        incoming: Map of class id -> (node id, child index) pairs targeting it

    Example:
        >>> g = parse({"nodes": {"a": {"op": "1", "eclass": "c"}}})
        >>> dict(g.class_to_nodes)
        {'c': ('a',)}
    """

    def __init__(
        self,
        nodes: Mapping[str, ENode],
        *,
        root_eclasses: Iterable[str] = (),
        class_data: Mapping[str, ClassData] | None = None,
        properties: Mapping[str, str] | None = None,
    ) -> None:
        self._nodes = dict(nodes)
        self._root_eclasses = tuple(root_eclasses)
        self._class_data = dict(class_data or {})
        self._properties = dict(properties or {})
        self._check_children()
        self._node_to_class = {node_id: node.eclass for node_id, node in self._nodes.items()}
        self._class_to_nodes = self._group_by_class()
        self._incoming = self._build_incoming()

    def _check_children(self) -> None:
        for node_id, node in self._nodes.items():
            for index, child in enumerate(node.children):
                if child not in self._nodes:
                    raise MalformedInputError(
                        f"Child reference '{child}' does not name a known node",
                        path=f"nodes.{node_id}.children[{index}]",
                    )

    def _group_by_class(self) -> dict[str, tuple[str, ...]]:
        grouped: dict[str, list[str]] = {}
        for node_id, node in self._nodes.items():
            grouped.setdefault(node.eclass, []).append(node_id)
        return {class_id: tuple(members) for class_id, members in grouped.items()}

    def _build_incoming(self) -> dict[str, tuple[tuple[str, int], ...]]:
        incoming: dict[str, list[tuple[str, int]]] = {}
        for node_id, node in self._nodes.items():
            for index, child in enumerate(node.children):
                incoming.setdefault(self._node_to_class[child], []).append((node_id, index))
        return {class_id: tuple(refs) for class_id, refs in incoming.items()}

    @property
    def nodes(self) -> Mapping[str, ENode]:
        """Map of node id -> ENode (read-only view)."""
        return MappingProxyType(self._nodes)

    @property
    def root_eclasses(self) -> tuple[str, ...]:
        return self._root_eclasses

    @property
    def class_data(self) -> Mapping[str, ClassData]:
        return MappingProxyType(self._class_data)

    @property
    def properties(self) -> Mapping[str, str]:
        return MappingProxyType(self._properties)

    @property
    def node_to_class(self) -> Mapping[str, str]:
        return MappingProxyType(self._node_to_class)

    @property
    def class_to_nodes(self) -> Mapping[str, tuple[str, ...]]:
        return MappingProxyType(self._class_to_nodes)

    @property
    def incoming(self) -> Mapping[str, tuple[tuple[str, int], ...]]:
        return MappingProxyType(self._incoming)

    def class_type(self, class_id: str) -> str | None:
        """Type tag of a class, or None when the class has no data."""
        data = self._class_data.get(class_id)
        return data.type if data is not None else None

    def child_class(self, child: str) -> str:
        """Class id a child reference points into."""
        return self._node_to_class[child]

    @functools.cached_property
    def class_graph(self) -> nx.DiGraph:
        """Class-level adjacency: an edge c1 -> c2 when a member of c1 has a child in c2."""
        graph: nx.DiGraph = nx.DiGraph()
        graph.add_nodes_from(self._class_to_nodes)
        for node in self._nodes.values():
            for child in node.children:
                graph.add_edge(node.eclass, self._node_to_class[child])
        return graph

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"EGraph(nodes={len(self._nodes)}, classes={len(self._class_to_nodes)})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the input format."""
        data: dict[str, Any] = {
            "nodes": {node_id: node.to_dict() for node_id, node in self._nodes.items()},
        }
        if self._root_eclasses:
            data["root_eclasses"] = list(self._root_eclasses)
        if self._class_data:
            data["class_data"] = {
                class_id: class_data.to_dict() for class_id, class_data in self._class_data.items()
            }
        if self._properties:
            data["properties"] = dict(self._properties)
        return data


# =============================================================================
# Parsing
# =============================================================================


def parse(raw: str | bytes | Mapping[str, Any]) -> EGraph:
    """Parse a serialized egraph.

    Args:
        raw: JSON document (str/bytes) or an already decoded mapping

    Returns:
        EGraph with its derived indices built

    Raises:
        MalformedInputError: If the input is not well-formed, including child
            references that do not resolve to a known node
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Invalid JSON: {e.msg}", path=f"line {e.lineno}") from e

    if not isinstance(raw, dict):
        raise MalformedInputError(f"Expected a JSON object, got {type(raw).__name__}")

    raw_nodes = raw.get("nodes")
    if not isinstance(raw_nodes, dict):
        raise MalformedInputError("Missing or invalid 'nodes' object", path="nodes")

    nodes = {str(node_id): _parse_node(str(node_id), entry) for node_id, entry in raw_nodes.items()}

    return EGraph(
        nodes,
        root_eclasses=_parse_root_eclasses(raw.get("root_eclasses")),
        class_data=_parse_class_data(raw.get("class_data")),
        properties=_parse_string_map(raw.get("properties"), "properties"),
    )


def _parse_node(node_id: str, entry: Any) -> ENode:
    path = f"nodes.{node_id}"
    if not isinstance(entry, dict):
        raise MalformedInputError(f"Node entry must be an object, got {type(entry).__name__}", path=path)

    op = entry.get("op")
    if not isinstance(op, str):
        raise MalformedInputError("Node 'op' must be a string", path=f"{path}.op")

    eclass = _class_id(entry.get("eclass"), f"{path}.eclass")

    children = entry.get("children", [])
    if children is None:
        children = []
    if not isinstance(children, list) or not all(isinstance(c, str) for c in children):
        raise MalformedInputError("Node 'children' must be a list of node ids", path=f"{path}.children")

    cost = entry.get("cost", 0.0)
    if isinstance(cost, bool) or not isinstance(cost, (int, float)) or math.isnan(cost):
        raise MalformedInputError("Node 'cost' must be a number", path=f"{path}.cost")

    subsumed = entry.get("subsumed", False)
    if not isinstance(subsumed, bool):
        raise MalformedInputError("Node 'subsumed' must be a boolean", path=f"{path}.subsumed")

    return ENode(op=op, eclass=eclass, children=tuple(children), cost=float(cost), subsumed=subsumed)


def _class_id(value: Any, path: str) -> str:
    # Some serializers emit numeric class ids
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise MalformedInputError("Class id must be a string", path=path)
    return str(value)


def _parse_root_eclasses(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise MalformedInputError("'root_eclasses' must be a list", path="root_eclasses")
    return tuple(_class_id(item, f"root_eclasses[{i}]") for i, item in enumerate(value))


def _parse_class_data(value: Any) -> dict[str, ClassData]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedInputError("'class_data' must be an object", path="class_data")

    class_data = {}
    for class_id, entry in value.items():
        path = f"class_data.{class_id}"
        if not isinstance(entry, dict):
            raise MalformedInputError("Class data entry must be an object", path=path)
        type_tag = entry.get("type")
        if type_tag is not None and not isinstance(type_tag, str):
            raise MalformedInputError("Class 'type' must be a string", path=f"{path}.type")
        properties = _parse_string_map(entry.get("properties"), f"{path}.properties")
        class_data[str(class_id)] = ClassData(type=type_tag, properties=properties)
    return class_data


def _parse_string_map(value: Any, path: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedInputError("Expected an object", path=path)
    return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in value.items()}
