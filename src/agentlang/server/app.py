"""FastAPI server exposing program loading and simulation control.

Provides:
- POST /api/program: Load program source
- POST /api/simulation/{play,pause,step,reset}: Drive the step runner
- GET /api/simulation: Runner state
- GET /api/simulation/output: Outputs produced so far
"""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from agentlang import __version__
from agentlang.config import InterpreterConfig, get_config
from agentlang.engine.interpreter import Interpreter
from agentlang.engine.runner import Runner
from agentlang.model.output import InterpreterOutput

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


class SimulationSession:
    """Thread-safe holder of the currently loaded program and its runner."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runner: Runner | None = None

    @property
    def runner(self) -> Runner | None:
        with self._lock:
            return self._runner

    def load(self, interpreter: Interpreter) -> Runner:
        """Replace the loaded program, stopping any previous runner."""
        runner = Runner(interpreter)
        with self._lock:
            previous, self._runner = self._runner, runner
        if previous is not None:
            previous.stop()
        return runner

    def require_runner(self) -> Runner:
        runner = self.runner
        if runner is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No program is loaded",
            )
        return runner

    def shutdown(self) -> None:
        runner = self.runner
        if runner is not None:
            runner.stop()


# Global session
_session: SimulationSession | None = None


def get_session() -> SimulationSession:
    """Get or create the global simulation session."""
    global _session
    if _session is None:
        _session = SimulationSession()
    return _session


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager: stop the runner thread on shutdown."""
    yield
    get_session().shutdown()


app = FastAPI(
    title="AgentLang",
    description="Interpreter API for the AgentLang simulation language",
    version=__version__,
    lifespan=lifespan,
)


# Pydantic models


class ProgramRequest(BaseModel):
    """Request model for loading a program."""

    source: str = Field(description="Program source text")
    steps: int | None = Field(default=None, ge=0, description="Override number of steps")
    delay: int | None = Field(default=None, ge=0, description="Override delay between steps (ms)")
    seed: int | None = Field(default=None, description="Seed for random builtins")


class ProgramResponse(BaseModel):
    """Response model for a loaded program."""

    agent_types: list[str] = Field(description="Declared agent types")
    defines: list[str] = Field(description="Declared global constants")
    steps: int = Field(description="Number of steps the runner will evaluate after step 0")


class SimulationStateResponse(BaseModel):
    """Response model for runner state."""

    state: str = Field(description="idle, running, paused, finished or failed")
    current_step: int = Field(description="Number of the next step to evaluate")
    steps: int = Field(description="Last step the runner will evaluate")
    produced: int = Field(description="Number of outputs produced so far")
    error: str | None = Field(default=None, description="Error message if the run failed")


class ControlCommandResponse(BaseModel):
    """Response for control commands."""

    success: bool = Field(description="Whether command succeeded")
    message: str = Field(description="Status message")


def _state_response(runner: Runner) -> SimulationStateResponse:
    outputs = runner.outputs
    error = outputs[-1].status.message if outputs and outputs[-1].status.code != 0 else None
    return SimulationStateResponse(
        state=runner.state.value,
        current_step=runner.current_step,
        steps=runner.interpreter.config.steps,
        produced=len(outputs),
        error=error,
    )


# Endpoints


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/api/program", response_model=ProgramResponse, tags=["program"])
async def load_program(request: ProgramRequest) -> ProgramResponse:
    """Parse a program and make it the active simulation.

    Raises:
        HTTPException: 400 if the source fails to parse.
    """
    overrides = {
        name: value
        for name, value in (("steps", request.steps), ("delay", request.delay), ("seed", request.seed))
        if value is not None
    }
    config = get_config()
    config = InterpreterConfig(**{**config.model_dump(), **overrides})

    interpreter = Interpreter(request.source, config)
    if interpreter.program is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(interpreter.error),
        )

    get_session().load(interpreter)
    program = interpreter.program
    logger.info("Loaded program with %d agent types", len(program.agents))
    return ProgramResponse(
        agent_types=[agent.identifier for agent in program.agents],
        defines=[define.identifier for define in program.defines],
        steps=config.steps,
    )


@app.get("/api/simulation", response_model=SimulationStateResponse, tags=["simulation"])
async def get_simulation() -> SimulationStateResponse:
    """Get runner state."""
    return _state_response(get_session().require_runner())


@app.get("/api/simulation/output", response_model=list[InterpreterOutput], tags=["simulation"])
async def get_simulation_output() -> list[InterpreterOutput]:
    """Get outputs produced so far, in step order."""
    return get_session().require_runner().outputs


@app.post("/api/simulation/play", response_model=ControlCommandResponse, tags=["simulation"])
async def play_simulation() -> ControlCommandResponse:
    """Start or resume stepping in the background."""
    get_session().require_runner().resume()
    return ControlCommandResponse(success=True, message="Simulation playing")


@app.post("/api/simulation/pause", response_model=ControlCommandResponse, tags=["simulation"])
async def pause_simulation() -> ControlCommandResponse:
    """Pause the simulation."""
    get_session().require_runner().pause()
    return ControlCommandResponse(success=True, message="Simulation paused")


@app.post("/api/simulation/step", response_model=InterpreterOutput, tags=["simulation"])
def step_simulation() -> InterpreterOutput:
    """Evaluate a single step.

    Raises:
        HTTPException: 409 if the run has already ended.
    """
    runner = get_session().require_runner()
    runner.pause()
    output = runner.step()
    if output is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Simulation has already ended; reset to run again",
        )
    return output


@app.post("/api/simulation/reset", response_model=ControlCommandResponse, tags=["simulation"])
def reset_simulation() -> ControlCommandResponse:
    """Stop the runner and rewind to step 0."""
    runner = get_session().require_runner()
    runner.stop()
    runner.reset()
    logger.info("Simulation reset")
    return ControlCommandResponse(success=True, message="Simulation reset to step 0")
