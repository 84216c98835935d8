"""MariaDB container: database, application user, grants, root password.

A temporary server is started so the one-time SQL can run, then shut down
so mysqld_safe can take over the data directory in the foreground.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from config import (
    DB_STOP_WAIT,
    MYSQL_CLIENT,
    MYSQL_DATA_DIR,
    MYSQL_MARKER_NAME,
    MYSQL_SERVER,
    MYSQL_SERVICE,
    MYSQLADMIN,
)
from .guard import FileMarkerGuard
from .probe import DependencyTarget, ReadinessProbe, mysqladmin_ping
from .sequencer import HandoffRequest, SetupAction, SetupOutcome, SetupSequencer
from .settings import DatabaseSettings
from .utils import CmdResult, log, run_capture

SQL_TIMEOUT = 60
# client-side "can't connect / server gone" codes
RETRYABLE_CODES = ("ERROR 2002", "ERROR 2003", "ERROR 2006", "ERROR 2013")
ACCESS_DENIED = "ERROR 1045"

Runner = Callable[..., CmdResult]


def quote_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class SqlClient:
    """Runs SQL as root over the local socket.

    Falls back to the root password when socket login is denied, which is
    the case once an earlier start already rotated the root credential.
    """

    def __init__(self, root_password: str, runner: Runner = run_capture):
        self.root_password = root_password
        self.runner = runner

    def _run(self, sql: str, with_password: bool) -> CmdResult:
        args = [MYSQL_CLIENT, "-uroot"]
        if with_password:
            args.append(f"--password={self.root_password}")
        return self.runner(args, timeout=SQL_TIMEOUT, input=sql)

    def execute(self, sql: str, label: str) -> SetupOutcome:
        result = self._run(sql, with_password=False)
        if not result.ok and ACCESS_DENIED in result.stderr:
            log(f"{label}: socket login denied, retrying with root password")
            result = self._run(sql, with_password=True)
        if result.ok:
            log(f"PASS: SQL {label}")
            return SetupOutcome.SUCCESS
        err = result.stderr.strip()
        logging.error("SQL %s\nEXIT: %s\nSTDERR: %s", label, result.returncode, err)
        if result.timed_out or any(code in err for code in RETRYABLE_CODES):
            return SetupOutcome.RETRYABLE
        return SetupOutcome.FATAL


def ensure_database(client: SqlClient, s: DatabaseSettings) -> SetupOutcome:
    return client.execute(
        f"CREATE DATABASE IF NOT EXISTS {quote_ident(s.database)};",
        f"create database {s.database}",
    )


def ensure_user(client: SqlClient, s: DatabaseSettings) -> SetupOutcome:
    return client.execute(
        f"CREATE USER IF NOT EXISTS {quote_literal(s.user)}@'%' "
        f"IDENTIFIED BY {quote_literal(s.password)};",
        f"create user {s.user}@%",
    )


def grant_privileges(client: SqlClient, s: DatabaseSettings) -> SetupOutcome:
    return client.execute(
        f"GRANT ALL PRIVILEGES ON {quote_ident(s.database)}.* "
        f"TO {quote_literal(s.user)}@'%';\nFLUSH PRIVILEGES;",
        f"grant {s.database}.* to {s.user}@%",
    )


def set_root_password(client: SqlClient, s: DatabaseSettings) -> SetupOutcome:
    return client.execute(
        f"ALTER USER 'root'@'localhost' IDENTIFIED BY {quote_literal(s.root_password)};"
        "\nFLUSH PRIVILEGES;",
        "set root password",
    )


def start_temporary_server(runner: Runner = run_capture) -> SetupOutcome:
    result = runner(MYSQL_SERVICE, timeout=SQL_TIMEOUT)
    if result.ok:
        return SetupOutcome.SUCCESS
    logging.error("Could not start temporary MariaDB: %s", result.stderr.strip())
    return SetupOutcome.FATAL


def stop_temporary_server(
    s: DatabaseSettings,
    runner: Runner = run_capture,
    sleep: Callable[[float], None] = time.sleep,
) -> SetupOutcome:
    args = [MYSQLADMIN, "-uroot", f"--password={s.root_password}", "shutdown"]
    result = runner(args, timeout=SQL_TIMEOUT)
    if not result.ok and ACCESS_DENIED in result.stderr:
        # root password never set: bootstrap was interrupted before rotation
        result = runner([MYSQLADMIN, "-uroot", "shutdown"], timeout=SQL_TIMEOUT)
    if not result.ok:
        logging.error("Could not stop temporary MariaDB: %s", result.stderr.strip())
        return SetupOutcome.FATAL
    sleep(DB_STOP_WAIT)
    return SetupOutcome.SUCCESS


def build_sequencer(
    s: DatabaseSettings,
    data_dir: str | Path = MYSQL_DATA_DIR,
    runner: Runner = run_capture,
    sleep: Callable[[float], None] = time.sleep,
    check=mysqladmin_ping,
) -> SetupSequencer:
    client = SqlClient(s.root_password, runner)
    actions = [
        SetupAction(f"create database {s.database}", lambda: ensure_database(client, s)),
        SetupAction(f"create user {s.user}", lambda: ensure_user(client, s)),
        SetupAction(f"grant {s.database} to {s.user}", lambda: grant_privileges(client, s)),
        SetupAction("set root password", lambda: set_root_password(client, s)),
    ]
    return SetupSequencer(
        name="mariadb",
        guard=FileMarkerGuard(Path(data_dir) / MYSQL_MARKER_NAME),
        handoff=HandoffRequest(list(MYSQL_SERVER)),
        prepare=[SetupAction("start temporary server", lambda: start_temporary_server(runner))],
        actions=actions,
        fixups=[
            SetupAction("stop temporary server", lambda: stop_temporary_server(s, runner, sleep))
        ],
        target=DependencyTarget("mariadb", "localhost", s.port),
        probe=ReadinessProbe(
            check,
            s.probe.interval,
            s.probe.max_attempts,
            initial_delay=s.probe.initial_delay,
            sleep=sleep,
        ),
        action_retries=s.probe.action_retries,
        sleep=sleep,
    )
