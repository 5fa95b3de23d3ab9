"""Runtime: environments, builtins and the step evaluator."""

from agentlang.runtime.context import EvaluationContext
from agentlang.runtime.environment import Environment
from agentlang.runtime.evaluator import Evaluator
from agentlang.runtime.functions import create_builtins

__all__ = ["Environment", "EvaluationContext", "Evaluator", "create_builtins"]
