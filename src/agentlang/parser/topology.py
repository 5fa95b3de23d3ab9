"""Dependency resolution: orders each agent body so dependencies come first.

Properties are evaluated in body order at step 0, so a property must come
after every sibling it reads. A property with a default value may refer to
itself (the default seeds the recurrence); any other cycle is an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from agentlang.errors import ParserError
from agentlang.model.nodes import (
    BinaryExpression,
    CallExpression,
    ConditionalExpression,
    Expression,
    Identifier,
    LambdaExpression,
    LogicalExpression,
    MemberExpression,
    ObjectDeclaration,
    OtherwiseExpression,
    Program,
    UnaryExpression,
    VariableDeclaration,
)

logger = logging.getLogger(__name__)


@dataclass
class DependencyNode:
    """Node of a per-agent dependency graph."""

    identifier: str
    dependencies: list[DependencyNode] = field(default_factory=list)

    def add_dependency(self, node: DependencyNode) -> None:
        self.dependencies.append(node)


class _Mark(Enum):
    VISITING = "visiting"
    DONE = "done"


def collect_dependencies(
    expression: Expression, agent_identifiers: frozenset[str] = frozenset()
) -> list[str]:
    """Collect identifiers an expression reads, in order of first appearance.

    Agent type names and identifiers bound by an enclosing lambda parameter
    are not dependencies; member names and called function names are not
    walked.
    """
    dependencies: list[str] = []
    bound: list[str] = []

    def walk(node: Expression) -> None:
        if isinstance(node, Identifier):
            name = node.identifier
            if name not in dependencies and name not in agent_identifiers and name not in bound:
                dependencies.append(name)
        elif isinstance(node, (BinaryExpression, LogicalExpression, OtherwiseExpression)):
            walk(node.left)
            walk(node.right)
        elif isinstance(node, UnaryExpression):
            walk(node.value)
        elif isinstance(node, ConditionalExpression):
            walk(node.condition)
            walk(node.consequent)
            walk(node.alternate)
        elif isinstance(node, CallExpression):
            for arg in node.args:
                walk(arg)
        elif isinstance(node, MemberExpression):
            walk(node.caller)
        elif isinstance(node, LambdaExpression):
            walk(node.base)
            bound.append(node.param)
            walk(node.value)
            bound.pop()

    walk(expression)
    return dependencies


class Topology:
    """Sorts agent property declarations into dependency order."""

    def __init__(self) -> None:
        self._agent_identifiers: frozenset[str] = frozenset()

    def sort(self, program: Program) -> Program:
        """Return a program with defines first and every agent body sorted.

        Raises:
            ParserError: If a property depends on itself without a default
                value, or if sibling properties form a dependency loop.
        """
        agents = program.agents
        self._agent_identifiers = frozenset(agent.identifier for agent in agents)

        sorted_agents = [self._sort_object_declaration(agent) for agent in agents]
        return replace(program, body=(*program.defines, *sorted_agents))

    def dependencies_of(self, declaration: VariableDeclaration) -> list[str]:
        """Dependencies of a property: its default if it has one, else its value."""
        expression = declaration.default if declaration.default is not None else declaration.value
        return collect_dependencies(expression, self._agent_identifiers)

    def _sort_object_declaration(self, declaration: ObjectDeclaration) -> ObjectDeclaration:
        graph: dict[str, DependencyNode] = {
            variable.identifier: DependencyNode(variable.identifier) for variable in declaration.body
        }

        for variable in declaration.body:
            dependencies = self.dependencies_of(variable)

            if variable.identifier in dependencies and variable.default is None:
                raise ParserError(
                    f"Agent property '{variable.identifier}' depends on itself, "
                    "but has no default value provided",
                    variable.position,
                )

            node = graph[variable.identifier]
            for dependency in dependencies:
                # Defines, builtins and lambda parameters add no edge
                if dependency in graph:
                    node.add_dependency(graph[dependency])

        order = self._topological_sort(graph, declaration)
        by_identifier = {variable.identifier: variable for variable in declaration.body}
        body = tuple(by_identifier[node.identifier] for node in order)

        logger.debug(
            "Sorted agent '%s' properties: %s",
            declaration.identifier,
            [variable.identifier for variable in body],
        )
        return replace(declaration, body=body)

    @staticmethod
    def _topological_sort(
        graph: dict[str, DependencyNode], declaration: ObjectDeclaration
    ) -> list[DependencyNode]:
        marks: dict[str, _Mark] = {}
        result: list[DependencyNode] = []

        def visit(node: DependencyNode) -> None:
            mark = marks.get(node.identifier)
            if mark is _Mark.DONE:
                return
            if mark is _Mark.VISITING:
                raise ParserError(
                    f"Agent properties contain a dependency loop in agent "
                    f"'{declaration.identifier}' (at '{node.identifier}')",
                    declaration.position,
                )

            marks[node.identifier] = _Mark.VISITING
            for dependency in node.dependencies:
                if dependency is not node:
                    visit(dependency)
            marks[node.identifier] = _Mark.DONE
            result.append(node)

        for node in graph.values():
            visit(node)

        return result
