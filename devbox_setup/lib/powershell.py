from __future__ import annotations

from typing import List

POWERSHELL = "powershell.exe"


def ps_argv(script: str) -> List[str]:
    """argv for a one-shot, non-interactive Windows PowerShell command."""

    return [POWERSHELL, "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", script]
