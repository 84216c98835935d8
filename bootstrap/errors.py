"""Error types raised by the bootstrap pipeline."""

from __future__ import annotations


class ConfigError(Exception):
    """A required environment value is missing or malformed."""

    def __init__(self, missing: list[str] | None = None, invalid: dict[str, str] | None = None):
        self.missing = list(missing or [])
        self.invalid = dict(invalid or {})
        parts = []
        if self.missing:
            parts.append("missing " + ", ".join(self.missing))
        for name, why in self.invalid.items():
            parts.append(f"invalid {name}: {why}")
        super().__init__("; ".join(parts) or "invalid configuration")


class BootstrapError(Exception):
    """The sequencer reached FAILED; carries the state it failed in."""

    def __init__(self, state: str, reason: str):
        self.state = state
        self.reason = reason
        super().__init__(f"{state}: {reason}")
