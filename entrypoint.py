#!/usr/bin/env python3
"""Container entrypoint for the mariadb, wordpress and nginx images.

Inputs: role as the first argument, settings from the environment.
Side effects: waits for the role's dependency, runs one-time setup guarded
by an on-disk marker, fixes up shared storage, then execs the foreground
server in place of this process.
"""
import os
import sys
from typing import Callable, Mapping

from bootstrap import mariadb, nginx, wordpress
from bootstrap.errors import BootstrapError, ConfigError
from bootstrap.sequencer import SetupSequencer, exec_handoff
from bootstrap.settings import load_database, load_proxy, load_wordpress
from bootstrap.utils import init_logging, log, status_fail

# ─── CONFIG ──────────────────────────────────────────────────────────────
ROLE_MARIADB = "mariadb"
ROLE_WORDPRESS = "wordpress"
ROLE_NGINX = "nginx"
USAGE = f"usage: entrypoint.py {ROLE_MARIADB}|{ROLE_WORDPRESS}|{ROLE_NGINX}"
EXIT_FAILED = 1
EXIT_CONFIG = 2


# ─── Role wiring ─────────────────────────────────────────────────────────
def build_mariadb(environ: Mapping[str, str]) -> SetupSequencer:
    return mariadb.build_sequencer(load_database(environ))


def build_wordpress(environ: Mapping[str, str]) -> SetupSequencer:
    return wordpress.build_sequencer(load_wordpress(environ))


def build_nginx(environ: Mapping[str, str]) -> SetupSequencer:
    return nginx.build_sequencer(load_proxy(environ))


ROLES: dict[str, Callable[[Mapping[str, str]], SetupSequencer]] = {
    ROLE_MARIADB: build_mariadb,
    ROLE_WORDPRESS: build_wordpress,
    ROLE_NGINX: build_nginx,
}


def main(
    argv: list[str],
    environ: Mapping[str, str] | None = None,
    execvpe: Callable = os.execvpe,
) -> int:
    environ = os.environ if environ is None else environ
    init_logging(None)
    if not argv or argv[0] not in ROLES:
        status_fail(USAGE)
        return EXIT_CONFIG
    role = argv[0]
    try:
        sequencer = ROLES[role](environ)
    except ConfigError as err:
        status_fail(f"{role}: configuration error: {err}")
        return EXIT_CONFIG
    try:
        request = sequencer.run()
    except BootstrapError:
        # already reported by the sequencer
        return EXIT_FAILED
    log(f"{role}: handing off to {request.argv[0]}")
    try:
        exec_handoff(request, execvpe)
    except OSError as err:
        status_fail(f"{role}: could not start {request.argv[0]}: {err}")
        return EXIT_FAILED
    return 0


def cli() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(cli())
