"""Pure rewrites of an EGraph that make it easier to read."""

from __future__ import annotations

import logging

from egraph_visualizer.egraph.core import ClassData, EGraph

logger = logging.getLogger(__name__)


def inline_properties(egraph: EGraph) -> EGraph:
    """Fold "property" classes into class or global properties.

    Serializers often encode facts such as ``(set (name x) "foo")`` as a
    class of their own that nothing points to, holding exactly two nodes.
    Such a class is removed and turned into a property:

    - both nodes are leaves: global property ``op(x) = op(y)``
    - one leaf ``y`` and one single-child node ``x``: property
      ``op(x) = op(y)`` on the class of ``x``'s child

    Returns:
        A new EGraph; the input is left untouched.
    """
    has_incoming = set(egraph.incoming)

    removed_nodes: set[str] = set()
    removed_classes: set[str] = set()
    global_properties = dict(egraph.properties)
    class_properties: dict[str, dict[str, str]] = {}

    for class_id, members in egraph.class_to_nodes.items():
        if class_id in has_incoming or len(members) != 2:
            continue

        leaves = [m for m in members if not egraph.nodes[m].children]
        single_child = [m for m in members if len(egraph.nodes[m].children) == 1]

        if len(leaves) == 2:
            x, y = (egraph.nodes[m] for m in leaves)
            global_properties[x.op] = y.op
        elif len(leaves) == 1 and len(single_child) == 1:
            x = egraph.nodes[single_child[0]]
            y = egraph.nodes[leaves[0]]
            target_class = egraph.child_class(x.children[0])
            class_properties.setdefault(target_class, {})[x.op] = y.op
        else:
            continue

        removed_nodes.update(members)
        removed_classes.add(class_id)

    if not removed_nodes:
        return egraph

    logger.debug("Inlined %d property classes", len(removed_classes))

    class_data = {
        class_id: data
        for class_id, data in egraph.class_data.items()
        if class_id not in removed_classes
    }
    for class_id, properties in class_properties.items():
        existing = class_data.get(class_id, ClassData())
        class_data[class_id] = ClassData(
            type=existing.type,
            properties={**existing.properties, **properties},
        )

    return EGraph(
        {node_id: node for node_id, node in egraph.nodes.items() if node_id not in removed_nodes},
        root_eclasses=egraph.root_eclasses,
        class_data=class_data,
        properties=global_properties,
    )
