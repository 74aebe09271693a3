from __future__ import annotations

import logging
from typing import List, Optional

from ..context import ModuleContext
from ..errors import ModuleExecutionError
from ..lib.registry import ensure_value, query_value

logger = logging.getLogger(__name__)

USER_ENV_KEY = r"HKCU\Environment"


def merge_path(current: Optional[str], entries: List[str]) -> Optional[str]:
    """Append missing entries to a ';' separated PATH. Returns None when nothing changes."""

    parts = [p for p in (current or "").split(";") if p]
    known = {p.rstrip("\\").lower() for p in parts}
    added = False
    for e in entries:
        if e.rstrip("\\").lower() not in known:
            parts.append(e)
            known.add(e.rstrip("\\").lower())
            added = True
    return ";".join(parts) if added else None


class EnvironmentStep:
    step_id = "environment"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        variables = ctx.config.environment_variables
        path_entries = ctx.config.path_entries
        if not variables and not path_entries:
            return "no environment variables configured"

        changed = 0
        failures: List[str] = []
        for name, value in variables.items():
            kind = "REG_EXPAND_SZ" if "%" in value else "REG_SZ"
            try:
                if ensure_value(ctx, USER_ENV_KEY, name, value, kind=kind):
                    changed += 1
            except (RuntimeError, OSError) as e:
                logger.error("Unable to set %s: %s", name, e)
                failures.append(name)

        if path_entries:
            merged = merge_path(query_value(ctx, USER_ENV_KEY, "Path"), path_entries)
            if merged is not None:
                try:
                    ensure_value(ctx, USER_ENV_KEY, "Path", merged, kind="REG_EXPAND_SZ")
                    changed += 1
                except (RuntimeError, OSError) as e:
                    logger.error("Unable to update Path: %s", e)
                    failures.append("Path")

        if failures:
            raise ModuleExecutionError(f"Could not set: {', '.join(failures)}")
        return f"{changed} variable(s) changed"
