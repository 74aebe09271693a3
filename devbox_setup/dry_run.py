"""Process-wide dry-run flag.

Some modules run as separate child processes, so the flag cannot live only in
memory. The entry point establishes it once, before any module runs, by
exporting ``DEVBOX_SETUP_DRY_RUN``; every module reads it back from the
environment at its own entry point (in-process modules get it through the
context builder, which reads the same variable).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import MutableMapping, Optional

ENV_VAR = "DEVBOX_SETUP_DRY_RUN"

# Child-process modules report dry-run intents on stdout with this prefix.
INTENT_PREFIX = "intent:"

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DryRunContext:
    enabled: bool

    def __bool__(self) -> bool:
        return self.enabled

    @property
    def label(self) -> str:
        return "dry-run" if self.enabled else "live"


def establish(enabled: bool, environ: Optional[MutableMapping[str, str]] = None) -> DryRunContext:
    env = os.environ if environ is None else environ
    env[ENV_VAR] = "1" if enabled else "0"
    return DryRunContext(enabled=bool(enabled))


def current(environ: Optional[MutableMapping[str, str]] = None) -> DryRunContext:
    env = os.environ if environ is None else environ
    raw = str(env.get(ENV_VAR, "")).strip().lower()
    return DryRunContext(enabled=raw in _TRUE)