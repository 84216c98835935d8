"""Shared fakes for the bootstrap tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import pytest

from bootstrap.utils import CmdResult


class MemoryGuard:
    """In-memory stand-in for the on-disk markers."""

    def __init__(self, done: bool = False):
        self.done = done
        self.marks = 0
        self.discards = 0

    def has_run(self) -> bool:
        return self.done

    def mark_done(self) -> None:
        self.marks += 1
        self.done = True

    def discard(self) -> None:
        self.discards += 1
        self.done = False


def ok(stdout: str = "") -> CmdResult:
    return CmdResult(0, stdout, "", 0.0)


def fail(code: int = 1, stderr: str = "") -> CmdResult:
    return CmdResult(code, "", stderr, 0.0)


@dataclass
class FakeRunner:
    """Records commands instead of running them.

    ``respond`` maps (argv, stdin) to a result; default is success.
    """

    respond: Callable[[list[str], str | None], CmdResult] = lambda args, stdin: ok()
    calls: list[dict] = field(default_factory=list)

    def __call__(self, args, timeout=None, env=None, input=None) -> CmdResult:
        args = [str(a) for a in args]
        self.calls.append({"args": args, "input": input, "env": env, "timeout": timeout})
        return self.respond(args, input)

    def commands(self) -> list[str]:
        return [" ".join(c["args"]) for c in self.calls]

    def sql(self) -> list[str]:
        return [c["input"] for c in self.calls if c["input"]]


class Sleeper:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def sleeper():
    return Sleeper()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def db_env():
    return {
        "MYSQL_DATABASE": "app_db",
        "MYSQL_USER": "app_user",
        "MYSQL_PASSWORD": "app_pass",
        "MYSQL_ROOT_PASSWORD": "root_pass",
    }


@pytest.fixture
def wp_env(db_env):
    env = {k: v for k, v in db_env.items() if k != "MYSQL_ROOT_PASSWORD"}
    env.update(
        {
            "DOMAIN_NAME": "login.42.fr",
            "WP_ADMIN_USER": "boss",
            "WP_ADMIN_PASSWORD": "boss_pass",
            "WP_ADMIN_EMAIL": "boss@example.com",
            "WP_USER": "writer",
            "WP_USER_EMAIL": "writer@example.com",
            "WP_USER_PASSWORD": "writer_pass",
        }
    )
    return env
