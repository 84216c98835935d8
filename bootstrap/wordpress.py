"""WordPress / PHP-FPM container: download, configure, install, accounts.

wp-config.php is the bootstrap marker. Each step also checks before it
creates, so a start that follows an interrupted setup picks up cleanly.
Ownership and modes of the content directory are normalized on every start.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from config import DIR_PERMS, PHP_FPM_BIN, USER_GROUP, WP_PATH
from .guard import ExistingFileGuard
from .probe import DependencyTarget, ReadinessProbe, all_of, mysqladmin_ping, tcp_check
from .sequencer import HandoffRequest, SetupAction, SetupOutcome, SetupSequencer
from .settings import WordPressSettings
from .utils import CmdResult, log, run_capture
from .wpcli import WpCli

CORE_MARKER = Path("wp-includes") / "version.php"
CONFIG_NAME = "wp-config.php"
FIXUP_TIMEOUT = 300


def _outcome(result: CmdResult) -> SetupOutcome:
    if result.ok:
        return SetupOutcome.SUCCESS
    if result.timed_out:
        return SetupOutcome.RETRYABLE
    return SetupOutcome.FATAL


def download_core(wp: WpCli) -> SetupOutcome:
    if (wp.path / CORE_MARKER).is_file():
        log(f"SKIP: WordPress core already present in {wp.path}")
        return SetupOutcome.SUCCESS
    wp.path.mkdir(parents=True, exist_ok=True)
    return _outcome(wp.run(["core", "download"]))


def create_config(wp: WpCli, s: WordPressSettings) -> SetupOutcome:
    return _outcome(
        wp.run(
            [
                "config", "create",
                f"--dbname={s.db_name}",
                f"--dbuser={s.db_user}",
                f"--dbpass={s.db_password}",
                f"--dbhost={s.db_host}:{s.db_port}",
            ]
        )
    )


def install_core(wp: WpCli, s: WordPressSettings) -> SetupOutcome:
    if wp.succeeds(["core", "is-installed"]):
        log("SKIP: WordPress already installed")
        return SetupOutcome.SUCCESS
    return _outcome(
        wp.run(
            [
                "core", "install",
                f"--url={s.domain}",
                f"--title={s.title}",
                f"--admin_user={s.admin.login}",
                f"--admin_password={s.admin.password}",
                f"--admin_email={s.admin.email}",
                "--skip-email",
            ]
        )
    )


def create_author(wp: WpCli, s: WordPressSettings) -> SetupOutcome:
    user = s.author
    if wp.succeeds(["user", "get", user.login, "--field=ID"]):
        log(f"SKIP: user {user.login} already exists")
        return SetupOutcome.SUCCESS
    return _outcome(
        wp.run(
            [
                "user", "create", user.login, user.email,
                f"--user_pass={user.password}",
                f"--role={user.role}",
            ]
        )
    )


def fix_permissions(path: Path, runner: Callable[..., CmdResult] = run_capture) -> SetupOutcome:
    for args in (
        ["chown", "-R", USER_GROUP, str(path)],
        ["chmod", "-R", oct(DIR_PERMS)[2:], str(path)],
    ):
        result = runner(args, timeout=FIXUP_TIMEOUT)
        if not result.ok:
            logging.error("%s failed: %s", " ".join(args), result.stderr.strip())
            return SetupOutcome.FATAL
    return SetupOutcome.SUCCESS


def build_sequencer(
    s: WordPressSettings,
    path: str | Path = WP_PATH,
    runner: Callable[..., CmdResult] = run_capture,
    sleep: Callable[[float], None] = time.sleep,
    check=None,
) -> SetupSequencer:
    path = Path(path)
    wp = WpCli(path, runner=runner, timeout=s.wp_timeout)
    if check is None:
        check = all_of(tcp_check, mysqladmin_ping)
    actions = [
        SetupAction("download WordPress core", lambda: download_core(wp)),
        SetupAction(f"write {CONFIG_NAME}", lambda: create_config(wp, s)),
        SetupAction(f"install WordPress for {s.domain}", lambda: install_core(wp, s)),
        SetupAction(f"create user {s.author.login} ({s.author.role})", lambda: create_author(wp, s)),
    ]
    return SetupSequencer(
        name="wordpress",
        guard=ExistingFileGuard(path / CONFIG_NAME),
        handoff=HandoffRequest([PHP_FPM_BIN, "-F"]),
        actions=actions,
        fixups=[SetupAction(f"normalize permissions of {path}", lambda: fix_permissions(path, runner))],
        target=DependencyTarget("mariadb", s.db_host, s.db_port, s.db_user, s.db_password),
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
