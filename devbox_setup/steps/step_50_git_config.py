from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..context import ModuleContext
from ..errors import ModuleExecutionError

logger = logging.getLogger(__name__)

GIT = "git"


def _current(ctx: ModuleContext, key: str) -> Optional[str]:
    r = ctx.probe([GIT, "config", "--global", "--get", key])
    if r is None or not r.ok:
        return None
    return r.stdout.strip() or None


class GitConfigStep:
    step_id = "git-config"

    def _identity(self, ctx: ModuleContext, key: str, configured: Optional[str]) -> Optional[str]:
        if configured:
            return configured
        existing = _current(ctx, key)
        if existing:
            return existing
        if ctx.dry_run:
            ctx.note_intent(f"ask for git {key} (not configured)")
            return None
        raise ModuleExecutionError(f"Git {key} is not configured; set git.{key.split('.')[-1]} in the setup config")

    def run(self, ctx: ModuleContext) -> Optional[str]:
        r = ctx.probe([GIT, "--version"])
        if (r is None or not r.ok) and not ctx.dry_run:
            raise ModuleExecutionError("git is not installed (it is installed by the software module)")

        wanted: List[Tuple[str, Optional[str]]] = [
            ("user.name", self._identity(ctx, "user.name", ctx.config.git_name)),
            ("user.email", self._identity(ctx, "user.email", ctx.config.git_email)),
            ("init.defaultBranch", ctx.config.git_default_branch),
            ("core.autocrlf", ctx.config.git_autocrlf),
        ]

        changed = 0
        for key, value in wanted:
            if value is None or _current(ctx, key) == value:
                continue
            ctx.run([GIT, "config", "--global", key, value])
            changed += 1
        return f"{changed} git setting(s) changed"
