"""NGINX container: self-signed certificate on first start, then nginx."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from config import (
    NGINX_BIN,
    SSL_CERT_NAME,
    SSL_DAYS,
    SSL_DIR,
    SSL_KEY_NAME,
    SSL_KEY_SPEC,
    SSL_SUBJECT,
)
from .guard import ExistingFileGuard
from .sequencer import HandoffRequest, SetupAction, SetupOutcome, SetupSequencer
from .settings import ProxySettings
from .utils import CmdResult, run_capture

OPENSSL_TIMEOUT = 120


def certificate_command(domain: str, cert: Path, key: Path) -> list[str]:
    return [
        "openssl", "req", "-x509", "-nodes",
        "-days", str(SSL_DAYS),
        "-newkey", SSL_KEY_SPEC,
        "-keyout", str(key),
        "-out", str(cert),
        "-subj", SSL_SUBJECT.format(domain=domain),
    ]


def generate_certificate(
    domain: str,
    cert: Path,
    key: Path,
    runner: Callable[..., CmdResult] = run_capture,
) -> SetupOutcome:
    cert.parent.mkdir(parents=True, exist_ok=True)
    result = runner(certificate_command(domain, cert, key), timeout=OPENSSL_TIMEOUT)
    if result.ok:
        return SetupOutcome.SUCCESS
    logging.error("openssl failed for %s: %s", domain, result.stderr.strip())
    return SetupOutcome.RETRYABLE if result.timed_out else SetupOutcome.FATAL


def build_sequencer(
    s: ProxySettings,
    ssl_dir: str | Path = SSL_DIR,
    runner: Callable[..., CmdResult] = run_capture,
    sleep: Callable[[float], None] = time.sleep,
) -> SetupSequencer:
    ssl_dir = Path(ssl_dir)
    cert = ssl_dir / SSL_CERT_NAME
    key = ssl_dir / SSL_KEY_NAME
    return SetupSequencer(
        name="nginx",
        guard=ExistingFileGuard(cert, companions=[key]),
        handoff=HandoffRequest([NGINX_BIN, "-g", "daemon off;"]),
        actions=[
            SetupAction(
                f"generate self-signed certificate for {s.domain}",
                lambda: generate_certificate(s.domain, cert, key, runner),
            )
        ],
        action_retries=s.action_retries,
        sleep=sleep,
    )
