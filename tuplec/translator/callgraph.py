"""Call graph of tuple functions, with Graphviz and matplotlib output."""
from __future__ import annotations

from pathlib import Path

try:
    import networkx as nx
except ModuleNotFoundError:  # pragma: no cover
    nx = None

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError:  # pragma: no cover
    plt = None

try:
    import pydot
except ModuleNotFoundError:  # pragma: no cover
    pydot = None

from ..constants import NODE_COLORS, TOPLEVEL_CALLER


def _require_networkx():
    if nx is None:
        raise RuntimeError("Call graphs require networkx to be installed")


def build_call_graph(result):
    """Build a directed graph of tuple-function calls from a translation result.

    Nodes are registered tuple functions (plus ``<toplevel>`` when a call
    happens outside any function body); an edge ``a -> b`` means a
    ``%call`` to ``b`` was translated while ``a`` was active.
    """

    _require_networkx()
    graph = nx.DiGraph()
    for sig in result.registry:
        graph.add_node(
            sig.name,
            kind="defined" if sig.defined else "declared",
            arity=sig.arity,
            params=sig.param_count,
            static=sig.is_static,
            line=sig.line_number,
            returns=", ".join(t.spelling for t in sig.return_tuple),
        )
    for site in result.calls:
        caller = site.caller or TOPLEVEL_CALLER
        if caller not in graph:
            graph.add_node(caller, kind="toplevel", arity=0, params=0, static=False, line=0, returns="")
        if graph.has_edge(caller, site.callee):
            graph[caller][site.callee]["lines"].append(site.line_number)
        else:
            graph.add_edge(caller, site.callee, lines=[site.line_number])
    return graph


def recursive_functions(graph):
    """Names of functions that can reach themselves through tuple calls."""

    _require_networkx()
    names = set()
    for component in nx.strongly_connected_components(graph):
        if len(component) > 1:
            names.update(component)
    names.update(u for u, _ in nx.selfloop_edges(graph))
    names.discard(TOPLEVEL_CALLER)
    return sorted(names)


def unused_functions(graph):
    """Defined tuple functions that no translated ``%call`` ever reaches."""

    return sorted(
        name
        for name, data in graph.nodes(data=True)
        if data.get("kind") == "defined" and graph.in_degree(name) == 0
    )


def call_graph_to_dot(graph):
    """Convert a call graph into a :class:`pydot.Dot` document."""

    if pydot is None:
        raise RuntimeError("Graphviz export requires pydot to be installed")

    recursive = set(recursive_functions(graph))
    dot = pydot.Dot(
        "tuplec_calls",
        graph_type="digraph",
        rankdir="LR",
        fontname="Helvetica",
    )
    for name, data in graph.nodes(data=True):
        kind = data.get("kind", "defined")
        if kind == "toplevel":
            label = name
        else:
            label = f"{name}\\n({data.get('returns', '')})"
        color = NODE_COLORS["recursive"] if name in recursive else NODE_COLORS[kind]
        dot.add_node(
            pydot.Node(
                f'"{name}"',
                label=f'"{label}"',
                shape="ellipse" if kind == "toplevel" else "box",
                style="dashed,filled" if kind == "declared" else "filled",
                fillcolor=color,
                fontname="Helvetica",
            )
        )
    for caller, callee, data in graph.edges(data=True):
        lines = data.get("lines", [])
        attrs = {"color": "#34495e"}
        if len(lines) > 1:
            attrs["label"] = f'"x{len(lines)}"'
        dot.add_edge(pydot.Edge(f'"{caller}"', f'"{callee}"', **attrs))
    return dot


def export_graphviz(graph, output_path):
    """Write the call graph as ``.dot`` text or, for any other suffix, SVG."""

    dot = call_graph_to_dot(graph)
    output_path = Path(output_path)
    if output_path.parent and not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.suffix == ".dot":
        output_path.write_text(dot.to_string(), encoding="utf-8")
    else:  # pragma: no cover - needs the Graphviz binaries
        dot.write_svg(str(output_path))
    print(f"  ✓ Call graph exported → {output_path}")
    return output_path


def visualize_call_graph(graph, output_path=None):  # pragma: no cover
    """Draw the call graph with matplotlib; save it when a path is given."""

    if nx is None or plt is None:
        raise RuntimeError("Visualization requires networkx and matplotlib to be installed")

    recursive = set(recursive_functions(graph))
    colors = [
        NODE_COLORS["recursive"] if name in recursive else NODE_COLORS[data.get("kind", "defined")]
        for name, data in graph.nodes(data=True)
    ]
    pos = nx.spring_layout(graph, seed=7)
    fig, ax = plt.subplots(figsize=(8, 6))
    nx.draw_networkx(
        graph,
        pos,
        ax=ax,
        node_color=colors,
        node_size=1600,
        font_size=9,
        arrows=True,
        edge_color="#7f8c8d",
    )
    ax.set_title("Tuple function calls")
    ax.axis("off")
    if output_path:
        fig.savefig(output_path, bbox_inches="tight")
        print(f"  ✓ Call graph rendered → {output_path}")
    else:
        plt.show()
    plt.close(fig)


__all__ = [
    "build_call_graph",
    "recursive_functions",
    "unused_functions",
    "call_graph_to_dot",
    "export_graphviz",
    "visualize_call_graph",
]
