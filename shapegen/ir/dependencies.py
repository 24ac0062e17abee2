"""Dependency analysis over declaration name graphs.

Declarations reference one another by name only, so every question about
ordering or recursion is answered on a plain ``{name: {dependency, ...}}``
mapping.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ..errors import CircularDependencyError
from .models import Declaration

DependencyGraph = Mapping[str, Iterable[str]]


def dependency_graph(declarations: Iterable[Declaration]) -> dict[str, set[str]]:
    """Build the name graph, keeping source order of the declarations."""
    return {decl.name: set(decl.dependencies) for decl in declarations}


def topological_sort(graph: DependencyGraph) -> list[str]:
    """Order names so every dependency precedes its dependents.

    Dependencies that are not themselves nodes of the graph are ignored.
    Dependency sets are visited in sorted order so the result is stable.

    Raises:
        CircularDependencyError: If the graph contains a cycle.
    """
    result: list[str] = []
    visited: set[str] = set()
    visiting: list[str] = []

    def visit(name: str) -> None:
        if name in visited:
            return
        if name in visiting:
            cycle = visiting[visiting.index(name):] + [name]
            raise CircularDependencyError(cycle)

        visiting.append(name)
        for dep in sorted(graph.get(name, ())):
            if dep in graph:
                visit(dep)
        visiting.pop()

        visited.add(name)
        result.append(name)

    for name in graph:
        visit(name)
    return result


def find_recursive_types(graph: DependencyGraph) -> set[str]:
    """Return every name that can reach itself through the graph."""
    recursive: set[str] = set()

    for name in graph:
        stack = list(graph.get(name, ()))
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current == name:
                recursive.add(name)
                break
            if current in seen:
                continue
            seen.add(current)
            stack.extend(graph.get(current, ()))

    return recursive


def collect_known_types(declarations: Iterable[Declaration]) -> set[str]:
    """Names transitively depended upon by exported declarations."""
    decls = list(declarations)
    graph = dependency_graph(decls)
    known: set[str] = set()
    stack = [dep for d in decls if d.is_exported for dep in d.dependencies]

    while stack:
        name = stack.pop()
        if name in known:
            continue
        known.add(name)
        stack.extend(graph.get(name, ()))

    return known


def acyclic_graph(graph: DependencyGraph, recursive: set[str]) -> dict[str, set[str]]:
    """Drop edges between recursive types so the graph can be ordered.

    Any cycle consists solely of recursive types; their schemas are emitted
    lazily, so the edges among them carry no ordering constraint.
    """
    return {
        name: {
            dep
            for dep in deps
            if not (name in recursive and dep in recursive)
        }
        for name, deps in graph.items()
    }
