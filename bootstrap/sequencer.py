"""Straight-line container start pipeline.

WAITING_DEPENDENCY -> BOOTSTRAPPING (skipped when the guard says so) ->
FIXUP -> RUNNING. Any failure ends in FAILED, raised as BootstrapError.
run() returns a HandoffRequest; exec_handoff() turns it into the container's
foreground process.
"""

from __future__ import annotations

import enum
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence

from config import RETRY_DELAY
from .errors import BootstrapError
from .probe import DependencyTarget, ProbeResult, ReadinessProbe
from .utils import log, status_fail, status_pass


class SetupOutcome(enum.Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class State(enum.Enum):
    WAITING_DEPENDENCY = "WAITING_DEPENDENCY"
    BOOTSTRAPPING = "BOOTSTRAPPING"
    FIXUP = "FIXUP"
    RUNNING = "RUNNING"
    FAILED = "FAILED"


@dataclass(frozen=True)
class SetupAction:
    name: str
    run: Callable[[], SetupOutcome]


@dataclass(frozen=True)
class HandoffRequest:
    argv: list[str]


class Guard(Protocol):
    def has_run(self) -> bool: ...

    def mark_done(self) -> None: ...

    def discard(self) -> None: ...


@dataclass
class SetupSequencer:
    name: str
    guard: Guard
    handoff: HandoffRequest
    actions: Sequence[SetupAction] = ()
    fixups: Sequence[SetupAction] = ()
    prepare: Sequence[SetupAction] = ()
    target: DependencyTarget | None = None
    probe: ReadinessProbe | None = None
    action_retries: int = 0
    retry_delay: float = RETRY_DELAY
    sleep: Callable[[float], None] = time.sleep
    states: list[State] = field(default_factory=list)

    @property
    def state(self) -> State | None:
        return self.states[-1] if self.states else None

    def _enter(self, state: State) -> None:
        self.states.append(state)
        log(f"{self.name}: -> {state.value}")

    def _fail(self, reason: str) -> BootstrapError:
        failed_in = self.state.value if self.state else "START"
        self._enter(State.FAILED)
        logging.error("%s failed in %s: %s", self.name, failed_in, reason)
        status_fail(f"{self.name}: {reason}")
        return BootstrapError(failed_in, reason)

    def _run_action(self, action: SetupAction, retries: int) -> SetupOutcome:
        attempts = retries + 1
        for attempt in range(1, attempts + 1):
            logging.info("%s: %s", self.name, action.name)
            try:
                outcome = action.run()
            except Exception:
                logging.exception("%s: %s raised", self.name, action.name)
                return SetupOutcome.FATAL
            if outcome is SetupOutcome.SUCCESS:
                status_pass(action.name)
                return outcome
            if outcome is not SetupOutcome.RETRYABLE:
                return SetupOutcome.FATAL
            if attempt < attempts:
                logging.warning(
                    "%s: %s failed (retryable), attempt %d/%d",
                    self.name, action.name, attempt, attempts,
                )
                self.sleep(self.retry_delay)
        logging.error("%s: %s still failing after %d attempts", self.name, action.name, attempts)
        return SetupOutcome.FATAL

    def _wait(self) -> None:
        self._enter(State.WAITING_DEPENDENCY)
        for action in self.prepare:
            if self._run_action(action, self.action_retries) is not SetupOutcome.SUCCESS:
                raise self._fail(f"{action.name} failed")
        if self.target is None or self.probe is None:
            log(f"{self.name}: no dependency to wait for")
            return
        if self.probe.await_ready(self.target) is ProbeResult.TIMED_OUT:
            raise self._fail(
                f"{self.target} not ready after {self.probe.max_attempts} attempts"
            )

    def _bootstrap(self) -> None:
        if self.guard.has_run():
            logging.info("%s: already bootstrapped (%r), skipping setup", self.name, self.guard)
            return
        self._enter(State.BOOTSTRAPPING)
        logging.info("%s: running one-time setup", self.name)
        for action in self.actions:
            if self._run_action(action, self.action_retries) is SetupOutcome.SUCCESS:
                continue
            self._discard()
            raise self._fail(f"{action.name} failed; setup will be retried on next start")
        try:
            self.guard.mark_done()
        except OSError as err:
            self._discard()
            raise self._fail(f"could not record bootstrap completion: {err}")
        status_pass(f"{self.name} one-time setup complete")

    def _discard(self) -> None:
        try:
            self.guard.discard()
        except OSError as err:
            logging.error("%s: could not discard partial bootstrap state: %s", self.name, err)

    def _fixup(self) -> None:
        self._enter(State.FIXUP)
        for action in self.fixups:
            if self._run_action(action, 0) is not SetupOutcome.SUCCESS:
                raise self._fail(f"{action.name} failed")

    def run(self) -> HandoffRequest:
        self._wait()
        self._bootstrap()
        self._fixup()
        self._enter(State.RUNNING)
        logging.info("%s: starting %s", self.name, " ".join(self.handoff.argv))
        return self.handoff


def exec_handoff(request: HandoffRequest, execvpe: Callable = os.execvpe) -> None:
    """Replace the current process with the foreground server.

    Log handlers are flushed first since exec never returns.
    """
    env = dict(os.environ)
    for handler in logging.getLogger().handlers:
        handler.flush()
    execvpe(request.argv[0], request.argv, env)
