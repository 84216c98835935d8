"""Dependency readiness polling.

A ReadinessProbe runs one health check per attempt against a
DependencyTarget and gives up after a fixed number of attempts. Checks are
plain callables ``check(target) -> bool`` so callers and tests can swap them.
"""

from __future__ import annotations

import enum
import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable

from config import MYSQLADMIN, TCP_TIMEOUT
from .utils import log, run_capture


@dataclass(frozen=True)
class DependencyTarget:
    name: str
    host: str
    port: int
    user: str | None = None
    password: str | None = None

    def __str__(self) -> str:
        return f"{self.name} ({self.host}:{self.port})"


class ProbeResult(enum.Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"


HealthCheck = Callable[[DependencyTarget], bool]


class ReadinessProbe:
    def __init__(
        self,
        check: HealthCheck,
        interval: float,
        max_attempts: int,
        initial_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.check = check
        self.interval = interval
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._sleep = sleep

    def await_ready(
        self,
        target: DependencyTarget,
        interval: float | None = None,
        max_attempts: int | None = None,
    ) -> ProbeResult:
        """Poll ``target`` until the check passes or attempts run out.

        Sleeps ``interval`` between failed attempts but not after the last
        one. A check that raises counts as a failed attempt.
        """
        interval = self.interval if interval is None else interval
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        if self.initial_delay > 0:
            logging.info("Waiting %.1fs before probing %s", self.initial_delay, target)
            self._sleep(self.initial_delay)
        for attempt in range(1, max_attempts + 1):
            try:
                healthy = bool(self.check(target))
            except Exception as err:
                logging.warning("Probe of %s raised: %s", target, err)
                healthy = False
            if healthy:
                logging.info("%s is ready (attempt %d/%d)", target, attempt, max_attempts)
                return ProbeResult.READY
            logging.info("Waiting for %s... attempt %d/%d", target, attempt, max_attempts)
            if attempt < max_attempts:
                self._sleep(interval)
        logging.error("%s not ready after %d attempts", target, max_attempts)
        return ProbeResult.TIMED_OUT


# ─── Health checks ──────────────────────────────────────────────────────────
def tcp_check(target: DependencyTarget) -> bool:
    try:
        with socket.create_connection((target.host, target.port), timeout=TCP_TIMEOUT):
            return True
    except OSError as err:
        log(f"tcp {target.host}:{target.port} refused: {err}")
        return False


def mysqladmin_ping(target: DependencyTarget) -> bool:
    """``mysqladmin ping``; authenticated when the target carries a user."""
    args = [MYSQLADMIN, "ping", f"-h{target.host}", f"--port={target.port}", "--silent"]
    if target.user:
        args.append(f"-u{target.user}")
    if target.password:
        args.append(f"--password={target.password}")
    result = run_capture(args, timeout=TCP_TIMEOUT * 2)
    return result.ok


def all_of(*checks: HealthCheck) -> HealthCheck:
    def combined(target: DependencyTarget) -> bool:
        for check in checks:
            if not check(target):
                return False
        return True

    return combined
