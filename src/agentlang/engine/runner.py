"""Background step scheduler driving an interpreter on a timer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import StrEnum

from agentlang.engine.interpreter import Interpreter
from agentlang.model.output import InterpreterOutput

logger = logging.getLogger(__name__)

Listener = Callable[[InterpreterOutput], None]


class RunnerState(StrEnum):
    """Lifecycle of a runner."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"
    FAILED = "failed"


class Runner:
    """Thread-safe step scheduler.

    Evaluates steps ``0..config.steps`` of an interpreter on a background
    thread, waiting ``config.delay`` milliseconds between steps. Step calls
    are serialized by a lock, so ``step()`` from another thread never
    overlaps the background loop. Every output is recorded and handed to the
    registered listeners. The runner finishes after the last step and stops
    on the first error.
    """

    def __init__(self, interpreter: Interpreter) -> None:
        self.interpreter = interpreter
        self._lock = threading.Lock()
        self._step_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._done_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._listeners: list[Listener] = []
        self._outputs: list[InterpreterOutput] = []
        self._next_step = 0
        self._state = RunnerState.IDLE

    @property
    def state(self) -> RunnerState:
        with self._lock:
            return self._state

    @property
    def current_step(self) -> int:
        """Number of the next step to evaluate."""
        with self._lock:
            return self._next_step

    @property
    def outputs(self) -> list[InterpreterOutput]:
        """Outputs produced so far, in step order."""
        with self._lock:
            return list(self._outputs)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    def start(self) -> None:
        """Start from step 0 on a background thread."""
        self.stop()
        self.reset()
        self.resume()

    def pause(self) -> None:
        with self._lock:
            if self._state is RunnerState.RUNNING:
                self._state = RunnerState.PAUSED
        logger.info("Runner paused")

    def resume(self) -> None:
        """Continue stepping in the background, starting the thread if needed."""
        with self._lock:
            if self._state in (RunnerState.FINISHED, RunnerState.FAILED):
                return
            self._state = RunnerState.RUNNING
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, daemon=True, name="agentlang-runner")
            self._thread.start()
        logger.info("Runner thread started")

    def step(self) -> InterpreterOutput | None:
        """Evaluate a single step synchronously.

        Returns:
            The step output, or None if the run already ended.
        """
        with self._lock:
            if self._state in (RunnerState.FINISHED, RunnerState.FAILED):
                return None
            if self._state is RunnerState.IDLE:
                self._state = RunnerState.PAUSED
        return self._advance()

    def reset(self) -> None:
        """Rewind to step 0 and drop recorded outputs."""
        with self._step_lock:
            self.interpreter.reset()
            with self._lock:
                self._outputs = []
                self._next_step = 0
                if self._state is not RunnerState.RUNNING:
                    self._state = RunnerState.IDLE
                self._done_event.clear()
        logger.info("Runner reset")

    def stop(self) -> None:
        """Stop the background thread; recorded outputs are kept."""
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout=2.0)
        with self._lock:
            if self._state is RunnerState.RUNNING:
                self._state = RunnerState.PAUSED
        logger.info("Runner thread stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the run finishes or fails.

        Returns:
            True if the run ended within the timeout.
        """
        return self._done_event.wait(timeout)

    def _loop(self) -> None:
        delay = self.interpreter.config.delay / 1000.0
        while not self._stop_event.is_set():
            state = self.state
            if state in (RunnerState.FINISHED, RunnerState.FAILED):
                break
            if state is RunnerState.RUNNING:
                try:
                    self._advance()
                except Exception:
                    logger.exception("Runner stopped by an unexpected error")
                    with self._lock:
                        self._state = RunnerState.FAILED
                    self._done_event.set()
                    break
            self._stop_event.wait(timeout=delay)

    def _advance(self) -> InterpreterOutput | None:
        with self._step_lock:
            with self._lock:
                if self._state in (RunnerState.FINISHED, RunnerState.FAILED):
                    return None
                step = self._next_step

            output = self.interpreter.output(step)

            with self._lock:
                self._outputs.append(output)
                self._next_step = step + 1
                if output.status.code != 0:
                    self._state = RunnerState.FAILED
                elif step >= self.interpreter.config.steps:
                    self._state = RunnerState.FINISHED
                ended = self._state in (RunnerState.FINISHED, RunnerState.FAILED)
                listeners = list(self._listeners)

        if ended:
            self._done_event.set()
            logger.info("Runner ended after step %d (%s)", step, self.state.value)

        for listener in listeners:
            listener(output)
        return output
