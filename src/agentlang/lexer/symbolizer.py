"""Symbolizer: turns source text into position-tagged characters."""

from __future__ import annotations

from agentlang.model.token import Position, Symbol


def symbolize(source_code: str) -> list[Symbol]:
    """Tag every character of the source with its 1-based position.

    The character counter advances per character and resets after a newline;
    the newline itself keeps the position on the line it terminates.
    """
    symbols: list[Symbol] = []
    line = 1
    character = 1

    for value in source_code:
        symbols.append(Symbol(value, Position(line, character)))
        character += 1
        if value == "\n":
            line += 1
            character = 1

    return symbols
