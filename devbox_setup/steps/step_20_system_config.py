from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..context import ModuleContext
from ..errors import ModuleExecutionError
from ..lib.registry import Value, apply_values

logger = logging.getLogger(__name__)

_EXPLORER = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced"
_THEMES = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"

PREFERENCES: List[Tuple[str, str, Value, str]] = [
    (_EXPLORER, "HideFileExt", 0, "REG_DWORD"),
    (_EXPLORER, "Hidden", 1, "REG_DWORD"),
    (_EXPLORER, "LaunchTo", 1, "REG_DWORD"),
    (_THEMES, "AppsUseLightTheme", 0, "REG_DWORD"),
    (_THEMES, "SystemUsesLightTheme", 0, "REG_DWORD"),
    (r"HKLM\SYSTEM\CurrentControlSet\Control\FileSystem", "LongPathsEnabled", 1, "REG_DWORD"),
    (r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\AppModelUnlock", "AllowDevelopmentWithoutDevLicense", 1, "REG_DWORD"),
]


class SystemConfigStep:
    step_id = "system-config"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        changed, failures = apply_values(ctx, PREFERENCES)
        if failures:
            raise ModuleExecutionError(f"Could not set: {', '.join(failures)}")
        return f"{changed} preference(s) changed"
