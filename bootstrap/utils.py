"""Utility helpers kept dependency-free.

- init_logging: configure console (+ optional rotating file) logging with run-id.
- status_pass/status_fail: concise console status lines (with run-id).
- run_capture: subprocess.run with capture, timeout and masked command logging.
- log: debug-level logger for routine detail.
- mask_argv: hide secrets in command lines before they reach the logs.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
import uuid
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Sequence


_RUN_ID = ""
RID_ENV = "BOOTSTRAP_RID"
LOG_DIR_ENV = "BOOTSTRAP_LOG_DIR"
SECRET_FLAGS = ("--password=", "--dbpass=", "--admin_password=", "--user_pass=")


def _gen_run_id() -> str:
    return uuid.uuid4().hex[:8]


def init_logging(run_id: str | None = None, log_dir: str | None = None) -> str:
    """Initialize logging with a console handler and an optional file handler.

    - Console: INFO+, stdout, so the container runtime collects it.
    - File: DEBUG+, rich format, written to <log_dir>/bootstrap-<rid>.log
      when a log directory is given or BOOTSTRAP_LOG_DIR is set.
    Returns the run-id used.
    """
    global _RUN_ID
    if _RUN_ID:
        return _RUN_ID

    rid = run_id or os.environ.get(RID_ENV) or _gen_run_id()
    _RUN_ID = rid

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in root.handlers):
        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(logging.INFO)
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(ch)

    log_dir = log_dir or os.environ.get(LOG_DIR_ENV)
    logfile = None
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            logfile = os.path.join(log_dir, f"bootstrap-{rid}.log")
        except OSError as err:
            logging.warning("Log directory %s unusable: %s", log_dir, err)
    if logfile:
        fh = RotatingFileHandler(logfile, maxBytes=5 * 1024 * 1024, backupCount=3)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        root.addHandler(fh)

    logging.debug("Logging initialized. run_id=%s file=%s", rid, logfile)
    os.environ[RID_ENV] = rid
    return rid


def _rid() -> str:
    return _RUN_ID or os.environ.get(RID_ENV, "--------")


def status_pass(msg: str) -> None:
    print(f"PASS: {msg} [{_rid()}]", flush=True)


def status_fail(msg: str) -> None:
    print(f"FAIL: {msg} [{_rid()}]", flush=True)


def log(msg: str) -> None:
    logging.debug(msg)


def mask_argv(args: Sequence[str]) -> str:
    """Render argv for logs with secret-bearing flags replaced by ***."""
    shown: list[str] = []
    for arg in args:
        for flag in SECRET_FLAGS:
            if arg.startswith(flag):
                arg = f"{flag}***"
                break
        else:
            # mysql-style glued password: -pSECRET
            if arg.startswith("-p") and len(arg) > 2:
                arg = "-p***"
        shown.append(arg)
    return " ".join(shown)


TIMEOUT_EXIT = 124


@dataclass(frozen=True)
class CmdResult:
    returncode: int
    stdout: str
    stderr: str
    duration: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMEOUT_EXIT


def run_capture(
    args: Sequence[str],
    timeout: float | None = None,
    env: dict[str, str] | None = None,
    input: str | None = None,
) -> CmdResult:
    """Run a command, never raising on non-zero exit or timeout.

    A missing binary is reported as exit 127, a timeout as exit 124.
    ``input`` is fed on stdin and never logged.
    """
    args = [str(a) for a in args]
    shown = mask_argv(args)
    t0 = time.monotonic()
    try:
        proc = subprocess.run(
            args,
            input=input,
            text=True,
            capture_output=True,
            timeout=timeout,
            env=env,
            encoding="utf-8",
            errors="replace",
        )
    except subprocess.TimeoutExpired:
        dt = time.monotonic() - t0
        logging.error("%s timeout after %.1fs", shown, dt)
        return CmdResult(TIMEOUT_EXIT, "", f"timeout after {dt:.1f}s", dt)
    except FileNotFoundError as err:
        dt = time.monotonic() - t0
        logging.error("%s: %s", shown, err)
        return CmdResult(127, "", str(err), dt)
    dt = time.monotonic() - t0
    if proc.returncode == 0:
        log(f"PASS: {shown} ({dt:.1f}s)")
    else:
        log(f"{shown} exit={proc.returncode} ({dt:.1f}s)")
    return CmdResult(proc.returncode, proc.stdout or "", proc.stderr or "", dt)
