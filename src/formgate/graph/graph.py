"""Field dependency graph.

Nodes live in a dict keyed by field name; edges are stored as name lists on
each node (``dependencies`` outgoing, ``dependents`` incoming).
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from formgate.fields import (
    CONDITION_SLOTS,
    RuleKind,
    build_field_path_map,
    extract_conditional_fields,
    extract_rule_references,
    flatten_rules,
    get_field_name,
    get_nested_items,
    is_container_field,
    is_data_field,
)

logger = logging.getLogger(__name__)


@dataclass
class DependencyNode:
    id: str
    field: str  # Full dotted path of the field
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    level: int | None = None  # None while unleveled (part of or downstream of a cycle)
    rules: list[dict] = field(default_factory=list)
    computed_rules: list[dict] = field(default_factory=list)

    def add_dependency(self, name: str) -> None:
        if name != self.id and name not in self.dependencies:
            self.dependencies.append(name)


@dataclass
class DependencyGraph:
    nodes: dict[str, DependencyNode] = field(default_factory=dict)
    levels: list[list[str]] = field(default_factory=list)
    has_circular: bool = False
    circular_paths: list[list[str]] = field(default_factory=list)

    def get_dependencies(self, name: str) -> list[str]:
        node = self.nodes.get(name)
        return list(node.dependencies) if node else []

    def get_dependents(self, name: str) -> list[str]:
        node = self.nodes.get(name)
        return list(node.dependents) if node else []

    def get_affected_fields(self, name: str) -> set[str]:
        """Every field that transitively depends on ``name`` (reverse BFS)"""
        affected: set[str] = set()
        queue = deque(self.get_dependents(name))
        while queue:
            current = queue.popleft()
            if current in affected:
                continue
            affected.add(current)
            queue.extend(d for d in self.get_dependents(current) if d not in affected)
        return affected

    def to_mermaid(self) -> str:
        """Export graph as Mermaid diagram"""
        lines = ["graph LR"]
        lines.append("    classDef cyclic fill:#fce4ec")

        for node_id, node in self.nodes.items():
            safe_id = node_id.replace(".", "_")
            style = ":::cyclic" if node.level is None else ""
            lines.append(f"    {safe_id}[{node.field}]{style}")

        for node_id, node in self.nodes.items():
            src = node_id.replace(".", "_")
            for dep in node.dependencies:
                lines.append(f"    {src} --> {dep.replace('.', '_')}")

        return "\n".join(lines)


class DependencyGraphBuilder:
    """Builds a DependencyGraph from a form configuration"""

    def build(self, form_config: dict[str, Any]) -> DependencyGraph:
        graph = DependencyGraph()

        items = form_config.get("items") or []
        path_map = build_field_path_map(items)
        self._extract(items, path_map, graph)
        self._transpose(graph, path_map)
        graph.levels = self._compute_levels(graph)
        graph.circular_paths = self._detect_cycles(graph)
        graph.has_circular = bool(graph.circular_paths)

        if graph.has_circular:
            logger.debug("Circular field dependencies: %s", graph.circular_paths)
        return graph

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _extract(self, items: list[dict], path_map: dict[str, str], graph: DependencyGraph) -> None:
        for item in items:
            if is_container_field(item):
                nested = get_nested_items(item)
                if nested:
                    self._extract(nested, path_map, graph)
                continue

            name = get_field_name(item)
            if not name or not is_data_field(item):
                continue

            node = graph.nodes.get(name)
            if node is None:
                node = DependencyNode(id=name, field=path_map[name])
                graph.nodes[name] = node

            rules = item.get("validationRules") or []
            node.rules.extend(rules)
            node.computed_rules.extend(
                r for r in flatten_rules(rules) if r.get("type") == RuleKind.COMPUTED.value
            )

            for slot in CONDITION_SLOTS:
                if item.get(slot) is not None:
                    for dep in extract_conditional_fields(item[slot]):
                        node.add_dependency(dep)

            for dep in extract_rule_references(rules):
                node.add_dependency(dep)

    def _transpose(self, graph: DependencyGraph, path_map: dict[str, str]) -> None:
        for node_id, node in list(graph.nodes.items()):
            for dep in node.dependencies:
                target = graph.nodes.get(dep)
                if target is None:
                    # Referenced but never declared as a field
                    target = DependencyNode(id=dep, field=path_map.get(dep, dep))
                    graph.nodes[dep] = target
                if node_id not in target.dependents:
                    target.dependents.append(node_id)

    # ------------------------------------------------------------------
    # Leveling and cycles
    # ------------------------------------------------------------------

    def _compute_levels(self, graph: DependencyGraph) -> list[list[str]]:
        """Kahn's algorithm; nodes on or behind a cycle stay unleveled"""
        in_degree = {node_id: len(node.dependencies) for node_id, node in graph.nodes.items()}
        visited: set[str] = set()
        levels: list[list[str]] = []

        while True:
            current = [
                node_id for node_id, degree in in_degree.items()
                if degree == 0 and node_id not in visited
            ]
            if not current:
                break

            for node_id in current:
                visited.add(node_id)
                graph.nodes[node_id].level = len(levels)
                for dependent in graph.nodes[node_id].dependents:
                    in_degree[dependent] -= 1
            levels.append(current)

        return levels

    def _detect_cycles(self, graph: DependencyGraph) -> list[list[str]]:
        cycles: list[list[str]] = []
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def visit(node_id: str) -> None:
            visited.add(node_id)
            stack.append(node_id)
            on_stack.add(node_id)

            for dep in graph.nodes[node_id].dependencies:
                if dep in on_stack:
                    cycles.append(stack[stack.index(dep):] + [dep])
                    break
                if dep not in visited:
                    visit(dep)

            stack.pop()
            on_stack.discard(node_id)

        for node_id in graph.nodes:
            if node_id not in visited:
                visit(node_id)

        return cycles


def export_graph(graph: DependencyGraph) -> dict:
    """Plain-dict view of the graph for devtools and the CLI"""
    return {
        "nodes": [
            {
                "id": node.id,
                "field": node.field,
                "level": node.level,
                "rule_count": len(node.rules),
                "computed_rule_count": len(node.computed_rules),
            }
            for node in graph.nodes.values()
        ],
        "edges": [
            {"from": node.id, "to": dep}
            for node in graph.nodes.values()
            for dep in node.dependencies
        ],
        "levels": [list(level) for level in graph.levels],
        "has_circular": graph.has_circular,
        "circular_paths": [list(path) for path in graph.circular_paths],
    }
