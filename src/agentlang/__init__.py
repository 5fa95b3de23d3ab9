"""AgentLang - a declarative language for agent-based simulations."""

from agentlang.engine.interpreter import Interpreter, parse
from agentlang.logging_config import configure_logging, get_logger
from agentlang.runtime.evaluator import Evaluator

__version__ = "0.1.0"

__all__ = ["Evaluator", "Interpreter", "__version__", "configure_logging", "get_logger", "parse"]
