"""Persisted "already bootstrapped" markers.

Two on-disk flavours share one small interface (has_run / mark_done /
discard):

- FileMarkerGuard: a dedicated sentinel file written after setup succeeds.
- ExistingFileGuard: the artifact setup produces (wp-config.php, the TLS
  certificate) is itself the marker; discard removes what a failed run left.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from .utils import log


class FileMarkerGuard:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def has_run(self) -> bool:
        return self.path.is_file()

    def mark_done(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", delete=False, dir=str(self.path.parent), prefix=".marker-"
        ) as tmp:
            tmp.write("ok\n")
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = tmp.name
        os.replace(tmp_path, self.path)
        log(f"PASS: Wrote bootstrap marker {self.path}")

    def discard(self) -> None:
        if self.path.exists():
            self.path.unlink()
            log(f"PASS: Removed bootstrap marker {self.path}")

    def __repr__(self) -> str:
        return f"FileMarkerGuard({str(self.path)!r})"


class ExistingFileGuard:
    def __init__(self, path: str | Path, companions: Iterable[str | Path] = ()):
        self.path = Path(path)
        self.companions = [Path(p) for p in companions]

    def has_run(self) -> bool:
        return self.path.is_file()

    def mark_done(self) -> None:
        if not self.path.is_file():
            raise FileNotFoundError(f"setup finished but {self.path} was not produced")
        log(f"PASS: Bootstrap artifact present {self.path}")

    def discard(self) -> None:
        for p in [self.path] + self.companions:
            if not p.exists():
                continue
            try:
                p.unlink()
                logging.warning("Removed partial artifact %s", p)
            except OSError as err:
                logging.error("Could not remove partial artifact %s: %s", p, err)
                raise

    def __repr__(self) -> str:
        return f"ExistingFileGuard({str(self.path)!r})"
