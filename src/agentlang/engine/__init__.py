"""Interpreter facade and background step runner."""

from agentlang.engine.interpreter import Interpreter, parse
from agentlang.engine.runner import Runner, RunnerState

__all__ = ["Interpreter", "Runner", "RunnerState", "parse"]
