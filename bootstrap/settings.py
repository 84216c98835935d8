"""Per-role settings read once from the process environment.

Each loader collects every missing or malformed value before raising a
single ConfigError, so a misconfigured container reports all problems at once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from config import (
    APP_PROBE_INTERVAL,
    DB_PROBE_INTERVAL,
    DEFAULT_ACTION_RETRIES,
    DEFAULT_DB_HOST,
    DEFAULT_DB_PORT,
    DEFAULT_PROBE_ATTEMPTS,
    DEFAULT_WP_TITLE,
    DEFAULT_WP_TIMEOUT,
    DEFAULT_WP_USER_ROLE,
)
from .errors import ConfigError

MAX_PORT = 65535


@dataclass(frozen=True)
class ProbeSettings:
    interval: float
    max_attempts: int
    initial_delay: float = 0.0
    action_retries: int = DEFAULT_ACTION_RETRIES


@dataclass(frozen=True)
class DatabaseSettings:
    database: str
    user: str
    password: str
    root_password: str
    port: int
    probe: ProbeSettings


@dataclass(frozen=True)
class WordPressAccount:
    login: str
    email: str
    password: str
    role: str = "administrator"


@dataclass(frozen=True)
class WordPressSettings:
    domain: str
    title: str
    db_name: str
    db_user: str
    db_password: str
    db_host: str
    db_port: int
    admin: WordPressAccount
    author: WordPressAccount
    probe: ProbeSettings
    wp_timeout: float = DEFAULT_WP_TIMEOUT


@dataclass(frozen=True)
class ProxySettings:
    domain: str
    action_retries: int = DEFAULT_ACTION_RETRIES


class _Reader:
    def __init__(self, environ: Mapping[str, str]):
        self.environ = environ
        self.missing: list[str] = []
        self.invalid: dict[str, str] = {}

    def required(self, name: str) -> str:
        value = (self.environ.get(name) or "").strip()
        if not value:
            self.missing.append(name)
        return value

    def optional(self, name: str, default: str) -> str:
        value = (self.environ.get(name) or "").strip()
        return value or default

    def number(self, name: str, default, cast=float, minimum=0, maximum=None, positive=False):
        raw = (self.environ.get(name) or "").strip()
        if not raw:
            return default
        try:
            value = cast(raw)
        except ValueError:
            self.invalid[name] = f"not a number: {raw!r}"
            return default
        if not math.isfinite(value):
            self.invalid[name] = f"not a finite number: {raw!r}"
            return default
        if positive and value <= 0:
            self.invalid[name] = "must be > 0"
            return default
        if value < minimum:
            self.invalid[name] = f"must be >= {minimum}"
            return default
        if maximum is not None and value > maximum:
            self.invalid[name] = f"must be <= {maximum}"
            return default
        return value

    def port(self) -> int:
        return self.number("MYSQL_PORT", DEFAULT_DB_PORT, int, 1, MAX_PORT)

    def retries(self) -> int:
        return self.number("BOOTSTRAP_RETRIES", DEFAULT_ACTION_RETRIES, int)

    def probe(self, interval: float) -> ProbeSettings:
        return ProbeSettings(
            interval=self.number("PROBE_INTERVAL", interval, positive=True),
            max_attempts=self.number("PROBE_MAX_ATTEMPTS", DEFAULT_PROBE_ATTEMPTS, int, 1),
            initial_delay=self.number("PROBE_INITIAL_DELAY", 0.0),
            action_retries=self.retries(),
        )

    def done(self) -> None:
        if self.missing or self.invalid:
            raise ConfigError(self.missing, self.invalid)


def load_database(environ: Mapping[str, str]) -> DatabaseSettings:
    r = _Reader(environ)
    settings = DatabaseSettings(
        database=r.required("MYSQL_DATABASE"),
        user=r.required("MYSQL_USER"),
        password=r.required("MYSQL_PASSWORD"),
        root_password=r.required("MYSQL_ROOT_PASSWORD"),
        port=r.port(),
        probe=r.probe(DB_PROBE_INTERVAL),
    )
    r.done()
    return settings


def load_wordpress(environ: Mapping[str, str]) -> WordPressSettings:
    r = _Reader(environ)
    settings = WordPressSettings(
        domain=r.required("DOMAIN_NAME"),
        title=r.optional("WP_TITLE", DEFAULT_WP_TITLE),
        db_name=r.required("MYSQL_DATABASE"),
        db_user=r.required("MYSQL_USER"),
        db_password=r.required("MYSQL_PASSWORD"),
        db_host=r.optional("MYSQL_HOST", DEFAULT_DB_HOST),
        db_port=r.port(),
        admin=WordPressAccount(
            login=r.required("WP_ADMIN_USER"),
            email=r.required("WP_ADMIN_EMAIL"),
            password=r.required("WP_ADMIN_PASSWORD"),
        ),
        author=WordPressAccount(
            login=r.required("WP_USER"),
            email=r.required("WP_USER_EMAIL"),
            password=r.required("WP_USER_PASSWORD"),
            role=r.optional("WP_USER_ROLE", DEFAULT_WP_USER_ROLE),
        ),
        probe=r.probe(APP_PROBE_INTERVAL),
        wp_timeout=r.number("WP_TIMEOUT", DEFAULT_WP_TIMEOUT, positive=True),
    )
    if settings.admin.login and settings.admin.login == settings.author.login:
        r.invalid["WP_USER"] = "must differ from WP_ADMIN_USER"
    r.done()
    return settings


def load_proxy(environ: Mapping[str, str]) -> ProxySettings:
    r = _Reader(environ)
    settings = ProxySettings(domain=r.required("DOMAIN_NAME"), action_retries=r.retries())
    r.done()
    return settings
