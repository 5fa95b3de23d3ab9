"""Step evaluator: turns a resolved program into one population per step.

Step 0 builds every agent from scratch, reading sibling properties from the
population under construction (the dependency sort guarantees they are
already filled). From step 1 onward every identifier reads the previous
step's committed snapshot, and consts are copied from it unchanged.
"""

from __future__ import annotations

import logging
import operator
import random
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from agentlang.config import InterpreterConfig
from agentlang.errors import EvaluationError
from agentlang.model.nodes import (
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    DefineDeclaration,
    Expression,
    Identifier,
    LambdaExpression,
    LogicalExpression,
    MemberExpression,
    NumericLiteral,
    ObjectDeclaration,
    OtherwiseExpression,
    Program,
    UnaryExpression,
    VariableDeclaration,
    VariableType,
)
from agentlang.model.output import Output, to_output
from agentlang.model.values import (
    NULL,
    AgentsValue,
    AgentValue,
    BooleanValue,
    FunctionValue,
    IdentifierValue,
    LambdaValue,
    NullValue,
    NumberValue,
    OutputValue,
    RuntimeAgent,
    RuntimeValue,
    normalize_number,
)
from agentlang.runtime.context import EvaluationContext
from agentlang.runtime.environment import Environment
from agentlang.runtime.functions import create_builtins

if TYPE_CHECKING:
    from agentlang.model.token import Position

logger = logging.getLogger(__name__)

_ARITHMETIC: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    # Python's % already yields a result with the divisor's sign
    "%": operator.mod,
}

_COMPARISON: dict[str, Callable[[float, float], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def agent_id(identifier: str, index: int) -> str:
    return f"{identifier}-{index}"


class Evaluator:
    """Evaluates a resolved program one step at a time.

    The evaluator owns the root environment (builtins, agent type tokens and
    defines), the random source and the last committed population. It is
    not safe to call ``run`` concurrently on one instance.

    Example:
        >>> evaluator = Evaluator(parse(source))
        >>> first = evaluator.run(0)
        >>> second = evaluator.run(1)
    """

    def __init__(self, program: Program, config: InterpreterConfig | None = None) -> None:
        self.program = program
        self.config = config or InterpreterConfig()
        self._rng = random.Random(self.config.seed)
        self._environment = self._create_environment()
        self._previous: dict[str, RuntimeAgent] | None = None
        self._defines_ready = False

    def reset(self) -> None:
        """Drop all state so the next run starts over from step 0."""
        self._rng = random.Random(self.config.seed)
        self._environment = self._create_environment()
        self._previous = None
        self._defines_ready = False
        logger.debug("Evaluator reset")

    def run(self, step: int) -> Output:
        """Evaluate one step and return its external output record.

        Raises:
            EvaluationError: On any runtime failure. The evaluator must be
                reset before it is used again.
        """
        return to_output(self.evaluate(step))

    def evaluate(self, step: int) -> OutputValue:
        """Evaluate one step and return the committed population."""
        if step < 0:
            raise EvaluationError(f"Step number must be non-negative, {step} provided")

        if step == 0:
            if self._defines_ready or self._previous is not None:
                self.reset()
            self._declare_defines()
        elif self._previous is None:
            raise EvaluationError(f"Step 0 must be evaluated before step {step}")

        builder: dict[str, RuntimeAgent] = {}
        population: Mapping[str, RuntimeAgent] = builder if step == 0 else self._previous  # type: ignore[assignment]

        for declaration in self.program.agents:
            self._build_agents(declaration, step, builder, population)

        self._commit(builder)
        logger.debug("Evaluated step with %d agents", len(builder), extra={"step": step})
        return OutputValue(step, tuple(builder.values()))

    # Setup

    def _create_environment(self) -> Environment:
        environment = Environment()
        for name, function in create_builtins(
            self._rng, self.config.width, self.config.height
        ).items():
            environment.declare(name, function)
        for declaration in self.program.agents:
            environment.declare(declaration.identifier, IdentifierValue(declaration.identifier))
        return environment

    def _declare_defines(self) -> None:
        for define in self.program.defines:
            self._environment.declare(define.identifier, self._define_value(define))
        self._defines_ready = True

    def _define_value(self, define: DefineDeclaration) -> RuntimeValue:
        expression = define.value
        if isinstance(expression, NumericLiteral):
            return self._number(expression.value)
        if isinstance(expression, BooleanLiteral):
            return BooleanValue(expression.value)
        if (
            isinstance(expression, UnaryExpression)
            and expression.operator == "-"
            and isinstance(expression.value, NumericLiteral)
        ):
            return self._number(-expression.value.value)
        raise EvaluationError(
            f"Define declaration '{define.identifier}' must be a numeric or boolean literal",
            define.position,
        )

    def _agent_count(self, declaration: ObjectDeclaration) -> int:
        expression = declaration.count
        if isinstance(expression, NumericLiteral):
            value = expression.value
        elif isinstance(expression, Identifier):
            scope = self._environment.resolve(expression.identifier)
            resolved = scope.lookup(expression.identifier) if scope is not None else None
            if not isinstance(resolved, NumberValue):
                raise EvaluationError(
                    f"Agent count of '{declaration.identifier}' must be a number",
                    expression.position,
                )
            value = resolved.value
        else:
            raise EvaluationError(
                f"Agent count of '{declaration.identifier}' must be a number or an identifier",
                expression.position,
            )

        if value < 0 or not float(value).is_integer():
            raise EvaluationError(
                f"Agent count of '{declaration.identifier}' must be a non-negative integer, "
                f"{value:g} provided",
                expression.position,
            )
        return int(value)

    # Step construction

    def _build_agents(
        self,
        declaration: ObjectDeclaration,
        step: int,
        builder: dict[str, RuntimeAgent],
        population: Mapping[str, RuntimeAgent],
    ) -> None:
        for index in range(self._agent_count(declaration)):
            agent = RuntimeAgent(agent_id(declaration.identifier, index), declaration.identifier)
            builder[agent.id] = agent
            context = EvaluationContext(
                step=step,
                index=index,
                agent_id=agent.id,
                population=population,
                scope=self._environment,
            )
            for variable in declaration.body:
                agent.variables[variable.identifier] = self._evaluate_variable(variable, context)

    def _evaluate_variable(
        self, declaration: VariableDeclaration, context: EvaluationContext
    ) -> RuntimeValue:
        if context.step == 0:
            expression = declaration.default if declaration.default is not None else declaration.value
            return self.evaluate_expression(expression, context)

        if declaration.variable_type is VariableType.CONST:
            previous = context.population.get(context.agent_id)
            if previous is None or declaration.identifier not in previous.variables:
                raise EvaluationError(
                    f"Variable '{declaration.identifier}' in agent '{context.agent_id}' does not exist",
                    declaration.position,
                )
            return previous.variables[declaration.identifier]

        return self.evaluate_expression(declaration.value, context)

    def _commit(self, builder: dict[str, RuntimeAgent]) -> None:
        """Make the built population the read source of the next step.

        Agent references stored in properties are relinked to the agents of
        this population, so snapshots never chain back to older steps.
        """
        for agent in builder.values():
            for name, value in agent.variables.items():
                agent.variables[name] = _relink(value, builder)
        self._previous = builder

    # Expressions

    def evaluate_expression(self, expression: Expression, context: EvaluationContext) -> RuntimeValue:
        """Evaluate an expression against the given context."""
        method = getattr(self, f"_evaluate_{type(expression).__name__}", None)
        if method is None:
            raise EvaluationError(
                f"Unsupported expression node '{type(expression).__name__}'", expression.position
            )
        return method(expression, context)

    def _number(self, value: float) -> NumberValue:
        return NumberValue(normalize_number(value, self.config.number_precision))

    @staticmethod
    def _fail(context: EvaluationContext, message: str, position: Position) -> NullValue:
        if context.suppress:
            return NULL
        raise EvaluationError(message, position)

    def _evaluate_NumericLiteral(self, node: NumericLiteral, context: EvaluationContext) -> RuntimeValue:
        return self._number(node.value)

    def _evaluate_BooleanLiteral(self, node: BooleanLiteral, context: EvaluationContext) -> RuntimeValue:
        return BooleanValue(node.value)

    def _evaluate_Identifier(self, node: Identifier, context: EvaluationContext) -> RuntimeValue:
        scope = context.scope.resolve(node.identifier)
        if scope is not None:
            return scope.lookup(node.identifier)

        agent = context.population.get(context.agent_id)
        if agent is not None and node.identifier in agent.variables:
            return agent.variables[node.identifier]

        return self._fail(
            context,
            f"Variable '{node.identifier}' in agent '{context.agent_id}' does not exist",
            node.position,
        )

    def _evaluate_BinaryExpression(self, node: BinaryExpression, context: EvaluationContext) -> RuntimeValue:
        left = self.evaluate_expression(node.left, context)
        right = self.evaluate_expression(node.right, context)

        if context.suppress and (left is NULL or right is NULL):
            return NULL

        if (
            node.operator in ("==", "!=")
            and isinstance(left, BooleanValue)
            and isinstance(right, BooleanValue)
        ):
            return BooleanValue(_COMPARISON[node.operator](left.value, right.value))

        if not isinstance(left, NumberValue) or not isinstance(right, NumberValue):
            return self._fail(
                context, "Binary expression requires numeric or boolean operands", node.position
            )

        if node.operator in _COMPARISON:
            return BooleanValue(_COMPARISON[node.operator](left.value, right.value))

        if right.value == 0 and node.operator == "/":
            return self._fail(context, "Division by zero not allowed", node.position)
        if right.value == 0 and node.operator == "%":
            return self._fail(context, "Modulo by zero not allowed", node.position)

        try:
            result = _ARITHMETIC[node.operator](left.value, right.value)
        except KeyError:
            raise EvaluationError(
                f"Unsupported binary operator '{node.operator}'", node.position
            ) from None
        return self._number(result)

    def _evaluate_UnaryExpression(self, node: UnaryExpression, context: EvaluationContext) -> RuntimeValue:
        value = self.evaluate_expression(node.value, context)
        if context.suppress and value is NULL:
            return NULL

        if node.operator == "-":
            if not isinstance(value, NumberValue):
                return self._fail(
                    context, "Unary expression '-' requires a numeric operand", node.position
                )
            return self._number(-value.value)

        if node.operator == "!":
            if not isinstance(value, BooleanValue):
                return self._fail(
                    context, "Unary expression '!' requires a boolean operand", node.position
                )
            return BooleanValue(not value.value)

        raise EvaluationError(f"Unsupported unary operator '{node.operator}'", node.position)

    def _evaluate_LogicalExpression(self, node: LogicalExpression, context: EvaluationContext) -> RuntimeValue:
        # Both sides are evaluated so type errors surface on either operand
        left = self.evaluate_expression(node.left, context)
        right = self.evaluate_expression(node.right, context)

        if context.suppress and (left is NULL or right is NULL):
            return NULL

        if not isinstance(left, BooleanValue) or not isinstance(right, BooleanValue):
            return self._fail(context, "Logical expression requires boolean operands", node.position)

        if node.operator == "and":
            return BooleanValue(left.value and right.value)
        if node.operator == "or":
            return BooleanValue(left.value or right.value)
        raise EvaluationError(f"Unsupported logical operator '{node.operator}'", node.position)

    def _evaluate_ConditionalExpression(
        self, node: ConditionalExpression, context: EvaluationContext
    ) -> RuntimeValue:
        condition = self.evaluate_expression(node.condition, context)
        if context.suppress and condition is NULL:
            return NULL

        if not isinstance(condition, BooleanValue):
            return self._fail(
                context,
                "Conditional expression requires a boolean expression as its condition",
                node.position,
            )

        branch = node.consequent if condition.value else node.alternate
        return self.evaluate_expression(branch, context)

    def _evaluate_CallExpression(self, node: CallExpression, context: EvaluationContext) -> RuntimeValue:
        if not isinstance(node.caller, Identifier):
            return self._fail(context, "Function call must be an identifier", node.position)

        name = node.caller.identifier
        scope = context.scope.resolve(name)
        if scope is None:
            return self._fail(
                context, f"Function with identifier '{name}' does not exist", node.position
            )

        function = scope.lookup(name)
        if not isinstance(function, FunctionValue):
            return self._fail(context, f"Identifier '{name}' is not a function", node.position)

        args = [self.evaluate_expression(arg, context) for arg in node.args]
        if context.suppress and any(arg is NULL for arg in args):
            return NULL

        try:
            result = function.call(args, context) if function.uses_context else function.call(args)
        except EvaluationError as error:
            if error.position is None:
                error.position = node.position
            raise

        if isinstance(result, NumberValue):
            return self._number(result.value)
        return result

    def _evaluate_MemberExpression(self, node: MemberExpression, context: EvaluationContext) -> RuntimeValue:
        caller = self.evaluate_expression(node.caller, context)
        if context.suppress and caller is NULL:
            return NULL

        if not isinstance(caller, AgentValue):
            return self._fail(
                context, "The caller of member expression must be of type 'agent'", node.position
            )

        if not isinstance(node.value, Identifier):
            return self._fail(
                context, "Member expression requires an identifier as its property", node.position
            )

        member = node.value.identifier
        agent = caller.value
        if member not in agent.variables:
            return self._fail(
                context,
                f"Agent does not have variable with identifier '{member}' in member expression",
                node.position,
            )
        return agent.variables[member]

    def _evaluate_LambdaExpression(self, node: LambdaExpression, context: EvaluationContext) -> RuntimeValue:
        base = self.evaluate_expression(node.base, context)
        if context.suppress and base is NULL:
            return NULL

        if not isinstance(base, AgentsValue):
            return self._fail(
                context, "Lambda expression requires base argument of type 'agents'", node.position
            )

        matched: list[RuntimeAgent] = []
        results: list[RuntimeValue] = []
        for agent in base.value:
            if agent.id == context.agent_id:
                continue
            scope = Environment(parent=context.scope)
            scope.declare(node.param, AgentValue(agent))
            matched.append(agent)
            results.append(self.evaluate_expression(node.value, context.with_scope(scope)))

        return LambdaValue(tuple(matched), tuple(results))

    def _evaluate_OtherwiseExpression(
        self, node: OtherwiseExpression, context: EvaluationContext
    ) -> RuntimeValue:
        left = self.evaluate_expression(node.left, context.suppressed())
        if left is not NULL:
            return left
        return self.evaluate_expression(node.right, context)


def _relink(value: RuntimeValue, population: Mapping[str, RuntimeAgent]) -> RuntimeValue:
    if isinstance(value, AgentValue):
        return AgentValue(population.get(value.value.id, value.value))
    if isinstance(value, AgentsValue):
        return AgentsValue(tuple(population.get(a.id, a) for a in value.value))
    if isinstance(value, LambdaValue):
        return LambdaValue(tuple(population.get(a.id, a) for a in value.agents), value.results)
    return value
