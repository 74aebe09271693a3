from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_FONT_PACKAGE = "DEVCOM.JetBrainsMonoNerdFont"


@dataclass(frozen=True)
class SetupConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Dict[str, Any]:
        sec = self.raw.get(name) or {}
        return sec if isinstance(sec, dict) else {}

    @property
    def git_name(self) -> Optional[str]:
        v = self._section("git").get("name")
        return str(v).strip() if v else None

    @property
    def git_email(self) -> Optional[str]:
        v = self._section("git").get("email")
        return str(v).strip() if v else None

    @property
    def git_default_branch(self) -> str:
        return str(self._section("git").get("default_branch") or "main")

    @property
    def git_autocrlf(self) -> str:
        v = self._section("git").get("autocrlf", True)
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)

    @property
    def environment_variables(self) -> Dict[str, str]:
        vars_ = self._section("environment").get("variables") or {}
        if not isinstance(vars_, dict):
            raise ValueError("environment.variables must be a mapping")
        return {str(k): str(v) for k, v in vars_.items()}

    @property
    def path_entries(self) -> List[str]:
        entries = self._section("environment").get("path") or []
        if not isinstance(entries, list):
            raise ValueError("environment.path must be a list")
        return [str(e).strip() for e in entries if str(e).strip()]

    @property
    def font_package(self) -> str:
        return str(self._section("fonts").get("package") or DEFAULT_FONT_PACKAGE)

    @property
    def powershell_profile_path(self) -> Optional[str]:
        v = self._section("powershell").get("profile_path")
        return str(v) if v else None

    @property
    def powershell_lines(self) -> Optional[List[str]]:
        lines = self._section("powershell").get("lines")
        if lines is None:
            return None
        if not isinstance(lines, list):
            raise ValueError("powershell.lines must be a list")
        return [str(x) for x in lines]

    @property
    def software_manifest(self) -> Optional[str]:
        v = self._section("software").get("manifest")
        return str(v) if v else None


def load_setup_config(path: Optional[str]) -> SetupConfig:
    """Load the optional user config (YAML). No path means built-in defaults."""

    if not path:
        return SetupConfig()

    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(path)
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("setup config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")
    return SetupConfig(raw=raw)
