"""
Planner — dependency graph, cycle detection, and execution order.

Pure functions over Section models. No I/O, no subprocess.

The graph has one node per section and an edge from each section to
every section it ``depends_on``. Planning fails before anything is
installed if the graph is malformed or cyclic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from macup.core.errors import ConfigValidationError, CyclicDependencyError
from macup.core.models.section import Section

logger = logging.getLogger(__name__)


class _Color(Enum):
    WHITE = 0   # unvisited
    GRAY = 1    # in progress (on the DFS stack)
    BLACK = 2   # done


@dataclass
class DependencyGraph:
    """Adjacency of sections: name → names it depends on.

    ``names`` preserves declaration order for deterministic tie-breaks.
    """

    names: list[str] = field(default_factory=list)
    depends_on: dict[str, list[str]] = field(default_factory=dict)

    def dependents(self, name: str) -> list[str]:
        """Sections that list ``name`` in their depends_on, in declaration order."""
        return [n for n in self.names if name in self.depends_on[n]]


def build_graph(sections: list[Section]) -> DependencyGraph:
    """Build the dependency graph, validating names and references.

    Raises:
        ConfigValidationError: Duplicate section names, references to
            unknown sections, or self-references.
    """
    graph = DependencyGraph()
    seen: set[str] = set()
    for section in sections:
        if section.name in seen:
            raise ConfigValidationError(f"Duplicate section name: '{section.name}'")
        seen.add(section.name)
        graph.names.append(section.name)

    for section in sections:
        deps: list[str] = []
        for dep in section.depends_on:
            if dep == section.name:
                raise ConfigValidationError(f"Section '{section.name}' cannot depend on itself")
            if dep not in seen:
                raise ConfigValidationError(
                    f"Section '{section.name}' depends on unknown section '{dep}'. "
                    f"Known sections: {', '.join(graph.names)}"
                )
            if dep not in deps:
                deps.append(dep)
        graph.depends_on[section.name] = deps

    return graph


def find_cycle(graph: DependencyGraph) -> list[str] | None:
    """Three-color DFS cycle search.

    Returns:
        The cycle as a list of names with the first name repeated at
        the end (e.g. ``['a', 'b', 'a']``), or None if acyclic.
    """
    color = {name: _Color.WHITE for name in graph.names}
    stack: list[str] = []

    def _visit(node: str) -> list[str] | None:
        color[node] = _Color.GRAY
        stack.append(node)
        for dep in graph.depends_on[node]:
            if color[dep] is _Color.GRAY:
                start = stack.index(dep)
                return stack[start:] + [dep]
            if color[dep] is _Color.WHITE:
                found = _visit(dep)
                if found:
                    return found
        stack.pop()
        color[node] = _Color.BLACK
        return None

    for name in graph.names:
        if color[name] is _Color.WHITE:
            cycle = _visit(name)
            if cycle:
                return cycle
    return None


def topological_order(graph: DependencyGraph) -> list[str]:
    """Kahn's algorithm with declaration-order tie-breaking.

    At every step the earliest-declared section whose dependencies are
    all placed goes next, so an unchanged config always yields the same
    order.

    Raises:
        CyclicDependencyError: If the graph has a cycle.
    """
    cycle = find_cycle(graph)
    if cycle:
        raise CyclicDependencyError(cycle)

    remaining = {name: len(graph.depends_on[name]) for name in graph.names}
    order: list[str] = []

    while len(order) < len(graph.names):
        ready = next(n for n in graph.names if remaining.get(n) == 0)
        order.append(ready)
        del remaining[ready]
        for child in graph.dependents(ready):
            remaining[child] -= 1

    return order


def plan_execution(
    sections: list[Section],
    only: list[str] | None = None,
) -> list[Section]:
    """Validate the sections and return them in execution order.

    Args:
        sections: All declared sections, in declaration order.
        only: Optional section names to restrict the run to. The whole
            graph is still validated; dependencies of the selected
            sections are not pulled in.

    Raises:
        ConfigValidationError: Malformed graph or unknown ``only`` names.
        CyclicDependencyError: The graph has a cycle.
    """
    graph = build_graph(sections)
    order = topological_order(graph)

    if only:
        unknown = [name for name in only if name not in graph.depends_on]
        if unknown:
            raise ConfigValidationError(
                f"Unknown section(s): {', '.join(unknown)}. "
                f"Known sections: {', '.join(graph.names)}"
            )
        order = [name for name in order if name in only]

    by_name = {s.name: s for s in sections}
    logger.debug("Execution order: %s", " → ".join(order))
    return [by_name[name] for name in order]
