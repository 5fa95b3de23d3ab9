"""Serializable step output records handed to the outer harness."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from agentlang.model.values import BooleanValue, NumberValue, OutputValue, RuntimeAgent


class OutputVariable(BaseModel):
    """A scalar property value tagged by kind."""

    type: Literal["number", "boolean"] = Field(description="Value kind")
    value: float | bool = Field(description="Scalar payload")


class OutputAgent(BaseModel):
    """Snapshot of one agent instance after a step."""

    id: str = Field(description="Instance id, '<type>-<index>'")
    type_identifier: str = Field(description="Agent type the instance belongs to")
    variables: dict[str, OutputVariable] = Field(
        default_factory=dict, description="Property values in evaluation order"
    )


class Output(BaseModel):
    """Result of evaluating one simulation step."""

    step: int = Field(description="Step number")
    agents: list[OutputAgent] = Field(default_factory=list, description="Agent snapshots")


class ExitStatus(BaseModel):
    """Exit status of an interpreter call."""

    code: int = Field(description="0 on success, 1 on error")
    message: str | None = Field(default=None, description="Error message if failed")


class InterpreterOutput(BaseModel):
    """Status record wrapping an optional step output."""

    status: ExitStatus
    output: Output | None = None


def agent_to_output(agent: RuntimeAgent) -> OutputAgent:
    """Convert a runtime agent into its external snapshot.

    Only number and boolean properties are exported; agent references,
    lists, functions and nulls stay internal to the evaluator.
    """
    variables: dict[str, OutputVariable] = {}
    for name, value in agent.variables.items():
        if isinstance(value, NumberValue):
            variables[name] = OutputVariable(type="number", value=value.value)
        elif isinstance(value, BooleanValue):
            variables[name] = OutputVariable(type="boolean", value=value.value)
    return OutputAgent(id=agent.id, type_identifier=agent.identifier, variables=variables)


def to_output(value: OutputValue) -> Output:
    """Convert an evaluator output value into a serializable record."""
    return Output(step=value.step, agents=[agent_to_output(a) for a in value.agents])
