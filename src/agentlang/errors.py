"""Error types raised by the lexer, parser and runtime."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentlang.model.token import Position


class AgentLangError(Exception):
    """Base class for all language errors.

    Every error carries the kind of the failing stage, a human-readable
    message and, where known, the source position it refers to.
    """

    kind: str = "AgentLang"

    def __init__(self, message: str, position: Position | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return f"{self.kind} Error: {self.message}"
        return (
            f"{self.kind} Error (line {self.position.line}, "
            f"character {self.position.character}): {self.message}"
        )


class LexerError(AgentLangError):
    """Raised when source text cannot be tokenized."""

    kind = "Lexer"


class ParserError(AgentLangError):
    """Raised on syntax, validation or dependency resolution failures."""

    kind = "Parser"


class EvaluationError(AgentLangError):
    """Raised when a simulation step cannot be evaluated."""

    kind = "Runtime"
