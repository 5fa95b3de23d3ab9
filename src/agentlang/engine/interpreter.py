"""Interpreter facade: source text in, per-step status records out."""

from __future__ import annotations

import logging

from agentlang.config import InterpreterConfig
from agentlang.errors import AgentLangError
from agentlang.lexer.lexer import tokenize
from agentlang.model.nodes import Program
from agentlang.model.output import ExitStatus, InterpreterOutput
from agentlang.parser.parser import Parser
from agentlang.runtime.evaluator import Evaluator

logger = logging.getLogger(__name__)


def parse(source_code: str) -> Program:
    """Tokenize, parse, validate and dependency-sort a program.

    Raises:
        LexerError: If the source cannot be tokenized.
        ParserError: On syntax errors, duplicate identifiers or
            dependency loops.
    """
    program = Parser(tokenize(source_code)).parse()
    logger.debug(
        "Parsed program with %d defines and %d agent types",
        len(program.defines),
        len(program.agents),
    )
    return program


class Interpreter:
    """Wraps parsing and evaluation behind exit-status records.

    A source that fails to parse yields an interpreter whose every output
    carries the parse error; a runtime failure yields an error record for
    that step.
    """

    def __init__(self, source_code: str, config: InterpreterConfig | None = None) -> None:
        self.source_code = source_code
        self.config = config or InterpreterConfig()
        self.error: AgentLangError | None = None
        self._evaluator: Evaluator | None = None

        try:
            self._evaluator = Evaluator(parse(source_code), self.config)
        except AgentLangError as e:
            self.error = e
            logger.warning("Program failed to load: %s", e)

    @property
    def program(self) -> Program | None:
        return self._evaluator.program if self._evaluator is not None else None

    def output(self, step: int) -> InterpreterOutput:
        """Evaluate one step.

        Args:
            step: Step number; step 0 (re)initializes the simulation.

        Returns:
            Code 0 with the step output, or code 1 with the error message.
        """
        if self._evaluator is None:
            return _failure(self.error)

        try:
            output = self._evaluator.run(step)
        except AgentLangError as e:
            logger.error("Step failed: %s", e, extra={"step": step})
            return _failure(e)

        return InterpreterOutput(status=ExitStatus(code=0), output=output)

    def reset(self) -> None:
        if self._evaluator is not None:
            self._evaluator.reset()


def _failure(error: AgentLangError | None) -> InterpreterOutput:
    message = str(error) if error is not None else "Program is not loaded"
    return InterpreterOutput(status=ExitStatus(code=1, message=message))
