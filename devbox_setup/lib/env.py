from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_PREFIX = "devbox-setup"


@dataclass(frozen=True)
class RunPaths:
    """Where one invocation keeps its log, report and hand-off artifacts."""

    base_dir: Path
    started_at: datetime

    @property
    def stamp(self) -> str:
        return self.started_at.strftime("%Y%m%d-%H%M%S")

    @property
    def log_file(self) -> Path:
        return self.base_dir / f"{LOG_PREFIX}-{self.stamp}.log"

    @property
    def report_file(self) -> Path:
        return self.base_dir / f"{LOG_PREFIX}-{self.stamp}.report.json"

    @property
    def hardware_artifact(self) -> Path:
        return self.base_dir / f"{LOG_PREFIX}-{self.stamp}.hardware.json"


def _is_remote(path: Path) -> bool:
    # UNC share (\\server\share) or a mapped "network" location.
    return str(path).startswith("\\\\") or str(path).startswith("//")


def _writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(path, os.W_OK)


def default_base_dir(script_path: Optional[str] = None) -> Path:
    """Directory next to the invoking script, or a temp dir when that is remote or read-only."""

    script = Path(script_path or sys.argv[0] or ".").expanduser()
    candidate = script.resolve().parent if script.name else Path.cwd()
    if not _is_remote(candidate) and _writable(candidate):
        return candidate
    return Path(tempfile.gettempdir()) / LOG_PREFIX


def make_run_paths(base_dir: Optional[str] = None, *, started_at: Optional[datetime] = None) -> RunPaths:
    base = Path(base_dir).expanduser() if base_dir else default_base_dir()
    return RunPaths(base_dir=base, started_at=started_at or datetime.now())
