# wpcli.py
# Invariants:
# - All WP-CLI access goes through WpCli.run; callers pass argv after "wp"
#   and never add --path/--allow-root.
# - Logs: one PASS/FAIL per call; stderr is scrubbed of PHP noise first.
# - Logged command lines never show passwords.

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Callable, Sequence

from config import DEFAULT_WP_TIMEOUT, WP_CLI_PATH, WP_PATH
from .utils import CmdResult, log, mask_argv, run_capture

WP_ENV = {
    "WP_CLI_DISABLE_AUTO_CHECK_UPDATE": "1",
    "WP_CLI_PHP_ARGS": "-d display_errors=0 -d display_startup_errors=0",
}

# ── Noise filters ───────────────────────────────────────────────────────────────
ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
NOISE_PREFIXES = (
    "PHP Warning:", "PHP Notice:", "PHP Deprecated:",
    "Warning:", "Notice:", "Deprecated:",
)
NOISE_PATTERNS = (
    re.compile(r"^#\d+:"),               # stack frames
    re.compile(r"^'trace'\s*=>"),        # array trace header
)


def drop_noise_lines(text: str) -> list[str]:
    out: list[str] = []
    for ln in ANSI_RE.sub("", text or "").splitlines():
        ln = ln.strip()
        if not ln:
            continue
        if any(ln.startswith(p) for p in NOISE_PREFIXES):
            continue
        if any(p.search(ln) for p in NOISE_PATTERNS):
            continue
        out.append(ln)
    return out


def _normalize_parts(command: Sequence[str]) -> list[str]:
    return [str(p) for p in command]


def _fmt_cmd_for_log(parts: list[str]) -> str:
    return "wp " + mask_argv(parts)


class WpCli:
    def __init__(
        self,
        path: str | Path = WP_PATH,
        runner: Callable[..., CmdResult] = run_capture,
        timeout: float = DEFAULT_WP_TIMEOUT,
    ):
        self.path = Path(path)
        self.runner = runner
        self.timeout = timeout

    def run(self, command: Sequence[str], quiet: bool = False) -> CmdResult:
        """Run one wp command; ``quiet`` keeps an expected non-zero exit out of the error log."""
        parts = _normalize_parts(command)
        if not parts:
            raise ValueError("empty wp command")
        args = [WP_CLI_PATH, "--allow-root", f"--path={self.path}", *parts]
        env = {**os.environ, **WP_ENV}
        result = self.runner(args, timeout=self.timeout, env=env)
        if result.ok:
            log(f"PASS: {_fmt_cmd_for_log(parts)} ({result.duration:.1f}s)")
        elif quiet:
            log(f"{_fmt_cmd_for_log(parts)} exit={result.returncode}")
        else:
            logging.error(
                "%s exit=%s\nSTDERR: %s",
                _fmt_cmd_for_log(parts),
                result.returncode,
                "\n".join(drop_noise_lines(result.stderr)),
            )
        return result

    def succeeds(self, command: Sequence[str]) -> bool:
        """True when the command exits 0; used for existence checks."""
        return self.run(command, quiet=True).ok
