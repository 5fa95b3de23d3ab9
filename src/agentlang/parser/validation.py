"""Identifier uniqueness checks run on a freshly parsed program."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentlang.errors import ParserError

if TYPE_CHECKING:
    from agentlang.model.nodes import Program


def validate(program: Program) -> None:
    """Validate declaration identifiers.

    Define identifiers must be unique, agent type identifiers must be unique,
    and property identifiers must be unique within one agent type.

    Raises:
        ParserError: At the position of the first duplicate found.
    """
    seen: set[str] = set()
    for define in program.defines:
        if define.identifier in seen:
            raise ParserError(
                f"Duplicate define declaration identifiers detected ('{define.identifier}')",
                define.position,
            )
        seen.add(define.identifier)

    seen = set()
    for agent in program.agents:
        if agent.identifier in seen:
            raise ParserError(
                f"Duplicate agent declaration identifiers detected ('{agent.identifier}')",
                agent.position,
            )
        seen.add(agent.identifier)

        properties: set[str] = set()
        for declaration in agent.body:
            if declaration.identifier in properties:
                raise ParserError(
                    f"Duplicate property declaration identifiers detected "
                    f"('{declaration.identifier}') in agent '{agent.identifier}'",
                    declaration.position,
                )
            properties.add(declaration.identifier)
