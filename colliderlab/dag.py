from __future__ import annotations

from collections.abc import Iterable

from ._exceptions import GraphError


class _Node:
    """
    A node proxy returned by ``DAG.assume()``. Use ``.causes()`` to add edges
    and ``.at()`` to pin the node for drawing::

        dag.assume("G").causes("P", "C").at(0, -0.5)
    """

    def __init__(self, name: str, dag: DAG) -> None:
        self._name = name
        self._dag = dag

    def causes(self, *effects: str) -> _Node:
        """Add an edge from this node to each effect. Returns self for chaining."""
        for effect in effects:
            self._dag._assert_edge(self._name, effect)
        return self

    def at(self, x: float, y: float) -> _Node:
        """Set the drawing position of this node. Returns self for chaining."""
        self._dag.place(self._name, x, y)
        return self


class DAG:
    """
    A directed acyclic graph describing how a dataset was generated.

    Every simulated dataset in colliderlab comes with the graph that produced
    it, so the analysis can ask which variables are colliders, which are
    common causes, and which nodes a given dataframe leaves unobserved.

    Example::

        dag = DAG()
        dag.assume("G").causes("P", "C")
        dag.assume("P").causes("C")
        dag.assume("U").causes("P", "C")

        dag.colliders()              # {'P', 'C'}
        dag.common_causes("P", "C")  # {'G', 'U'}
    """

    def __init__(self) -> None:
        self._edges: list[tuple[str, str]] = []
        self._coordinates: dict[str, tuple[float, float]] = {}

    # ── Building the graph ────────────────────────────────────────────────────

    def assume(self, node: str) -> _Node:
        """
        Name a node and return it so you can state what it causes::

            dag.assume("U").causes("P", "C")
        """
        return _Node(node, self)

    def place(self, node: str, x: float, y: float) -> None:
        """Pin ``node`` at ``(x, y)`` for :func:`colliderlab.plotting.draw_dag`."""
        self._coordinates[node] = (float(x), float(y))

    def _assert_edge(self, cause: str, effect: str) -> None:
        """Add a directed edge after validating it keeps the graph acyclic."""
        if cause == effect:
            raise GraphError(f"Self-loops are not allowed: '{cause}'")
        if (cause, effect) in self._edges:
            raise GraphError(f"'{cause}' → '{effect}' already asserted")
        self._edges.append((cause, effect))
        if self._has_cycle():
            self._edges.pop()
            raise GraphError(
                f"Asserting '{cause}' → '{effect}' would create a cycle. "
                f"Causal graphs must be acyclic (DAGs)."
            )

    # ── Graph properties ──────────────────────────────────────────────────────

    @property
    def nodes(self) -> set[str]:
        """All nodes in the graph."""
        result: set[str] = set()
        for cause, effect in self._edges:
            result.add(cause)
            result.add(effect)
        return result

    @property
    def edges(self) -> list[tuple[str, str]]:
        """All directed edges as (cause, effect) pairs, in insertion order."""
        return list(self._edges)

    @property
    def coordinates(self) -> dict[str, tuple[float, float]]:
        """Drawing positions set via ``place()`` or ``.at()``."""
        return dict(self._coordinates)

    def parents(self, node: str) -> set[str]:
        """Direct causes of node."""
        return {cause for cause, effect in self._edges if effect == node}

    def children(self, node: str) -> set[str]:
        """Direct effects of node."""
        return {effect for cause, effect in self._edges if cause == node}

    def ancestors(self, node: str) -> set[str]:
        """All nodes with a directed path leading to node."""
        result: set[str] = set()
        queue = list(self.parents(node))
        while queue:
            current = queue.pop()
            if current not in result:
                result.add(current)
                queue.extend(self.parents(current))
        return result

    def descendants(self, node: str) -> set[str]:
        """All nodes reachable from node via directed paths."""
        result: set[str] = set()
        queue = list(self.children(node))
        while queue:
            current = queue.pop()
            if current not in result:
                result.add(current)
                queue.extend(self.children(current))
        return result

    # ── Causal roles ──────────────────────────────────────────────────────────

    def colliders(self) -> set[str]:
        """
        Nodes with two or more direct causes.

        Conditioning on a collider (adding it to a regression, or selecting
        rows by it) opens a non-causal path between its causes.
        """
        return {node for node in self.nodes if len(self.parents(node)) >= 2}

    def common_causes(self, a: str, b: str) -> set[str]:
        """
        Confounders of ``a`` and ``b``: shared ancestors that are not
        themselves downstream of either node.
        """
        for node in (a, b):
            if node not in self.nodes:
                raise GraphError(f"'{node}' is not a node in the DAG. Known nodes: {sorted(self.nodes)}")
        shared = self.ancestors(a) & self.ancestors(b)
        return shared - self.descendants(a) - self.descendants(b)

    def unobserved(self, columns: Iterable[str]) -> set[str]:
        """DAG nodes that do not appear among ``columns``."""
        return self.nodes - set(columns)

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _has_cycle(self) -> bool:
        """Kahn's algorithm: returns True if the current edge list contains a cycle."""
        in_degree: dict[str, int] = {n: 0 for n in self.nodes}
        for _, effect in self._edges:
            in_degree[effect] += 1

        queue = [n for n, deg in in_degree.items() if deg == 0]
        visited = 0
        while queue:
            node = queue.pop()
            visited += 1
            for child in self.children(node):
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        return visited != len(self.nodes)

    # ── Display ───────────────────────────────────────────────────────────────

    def __repr__(self) -> str:
        if not self._edges:
            return "DAG (empty)"
        lines = ["DAG:"]
        for cause, effect in self._edges:
            lines.append(f"  {cause} → {effect}")
        return "\n".join(lines)
