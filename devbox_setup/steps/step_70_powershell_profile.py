from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..context import ModuleContext

logger = logging.getLogger(__name__)

BEGIN = "# >>> devbox-setup >>>"
END = "# <<< devbox-setup <<<"

DEFAULT_LINES = [
    "Set-PSReadLineOption -EditMode Windows",
    "Set-PSReadLineOption -PredictionSource History",
    "Set-Alias -Name g -Value git",
    "if (Get-Command oh-my-posh -ErrorAction SilentlyContinue) { oh-my-posh init pwsh | Invoke-Expression }",
]


def default_profile_path() -> Path:
    return Path.home() / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"


def render_profile(existing: str, lines: List[str]) -> str:
    """Replace (or append) the managed block, leaving user content untouched."""

    block = "\n".join([BEGIN, *lines, END])
    if BEGIN in existing and END in existing:
        head, _, rest = existing.partition(BEGIN)
        _, _, tail = rest.partition(END)
        return head + block + tail
    if existing and not existing.endswith("\n"):
        existing += "\n"
    return existing + block + "\n"


class PowerShellProfileStep:
    step_id = "powershell-profile"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        configured = ctx.config.powershell_profile_path
        path = Path(configured).expanduser() if configured else default_profile_path()
        lines = ctx.config.powershell_lines
        if lines is None:
            lines = DEFAULT_LINES

        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        updated = render_profile(existing, lines)
        if updated == existing:
            return "profile already up to date"

        ctx.write_text(path, updated)
        return f"profile updated: {path}"
