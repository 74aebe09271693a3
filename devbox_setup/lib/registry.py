from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple, Union

if TYPE_CHECKING:
    from ..context import ModuleContext

logger = logging.getLogger(__name__)

REG = "reg.exe"

Value = Union[int, str]


def parse_query_output(stdout: str, name: str) -> Optional[str]:
    """Extract the raw data column for ``name`` from ``reg query /v`` output."""

    for line in stdout.splitlines():
        parts = line.split(None, 2)
        if len(parts) == 3 and parts[0].lower() == name.lower() and parts[1].startswith("REG_"):
            return parts[2].strip()
        if len(parts) == 2 and parts[0].lower() == name.lower() and parts[1].startswith("REG_"):
            return ""
    return None


def query_value(ctx: "ModuleContext", key: str, name: str) -> Optional[str]:
    r = ctx.probe([REG, "query", key, "/v", name])
    if r is None or not r.ok:
        return None
    return parse_query_output(r.stdout, name)


def _same(current: Optional[str], desired: Value, kind: str) -> bool:
    if current is None:
        return False
    if kind == "REG_DWORD":
        try:
            return int(current, 0) == int(desired)
        except ValueError:
            return False
    return current == str(desired)


def ensure_value(ctx: "ModuleContext", key: str, name: str, value: Value, *, kind: str = "REG_DWORD") -> bool:
    """Write a registry value only when it differs. Returns True if a write was (or would be) issued."""

    if _same(query_value(ctx, key, name), value, kind):
        logger.debug("Registry already set: %s\\%s", key, name)
        return False
    ctx.run([REG, "add", key, "/v", name, "/t", kind, "/d", str(value), "/f"])
    return True


def apply_values(ctx: "ModuleContext", values: Sequence[Tuple[str, str, Value, str]]) -> Tuple[int, List[str]]:
    """Apply (key, name, value, kind) rows. Returns (changed count, failures); one bad row does not stop the rest."""

    changed = 0
    failures: List[str] = []
    for key, name, value, kind in values:
        try:
            if ensure_value(ctx, key, name, value, kind=kind):
                changed += 1
        except (RuntimeError, OSError) as e:
            logger.error("Registry write failed for %s\\%s: %s", key, name, e)
            failures.append(f"{key}\\{name}")
    return changed, failures
