from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from .state_store import save_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleResult:
    module_id: str
    display_name: str
    succeeded: bool
    duration_seconds: float
    error_kind: Optional[str] = None
    error_detail: Optional[str] = None
    intents: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "module_id": self.module_id,
            "display_name": self.display_name,
            "succeeded": self.succeeded,
            "duration_seconds": round(self.duration_seconds, 3),
            "error_kind": self.error_kind,
            "error_detail": self.error_detail,
            "intents": list(self.intents),
        }


@dataclass
class RunReport:
    dry_run: bool
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    results: List[ModuleResult] = field(default_factory=list)
    _t0: float = field(default_factory=time.monotonic, repr=False)
    _elapsed: Optional[float] = field(default=None, repr=False)

    @property
    def executed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)

    @property
    def failures(self) -> List[ModuleResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def module_ids(self) -> List[str]:
        return [r.module_id for r in self.results]

    @property
    def duration_seconds(self) -> float:
        if self._elapsed is not None:
            return self._elapsed
        return time.monotonic() - self._t0

    @property
    def finalized(self) -> bool:
        return self.finished_at is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(timespec="seconds"),
            "finished_at": self.finished_at.isoformat(timespec="seconds") if self.finished_at else None,
            "duration_seconds": round(self.duration_seconds, 3),
            "dry_run": self.dry_run,
            "executed": self.executed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.as_dict() for r in self.results],
        }


class RunReporter:
    """Collects module results and renders the end-of-run summary.

    Nothing here raises: rendering and persistence are best-effort and any
    problem is logged as a warning.
    """

    def __init__(self, report: RunReport, *, console: Optional[Console] = None) -> None:
        self.report = report
        self.console = console or Console(stderr=True)

    def record(self, result: ModuleResult) -> None:
        if self.report.finalized:
            logger.warning("Ignoring result for %s: report already finalized", result.module_id)
            return
        self.report.results.append(result)

    def finalize(self) -> RunReport:
        if not self.report.finalized:
            self.report._elapsed = time.monotonic() - self.report._t0
            self.report.finished_at = datetime.now()
        return self.report

    def summary_lines(self) -> List[str]:
        r = self.report
        lines = [
            f"Modules executed: {r.executed}",
            f"Succeeded: {r.succeeded}",
            f"Failed: {r.failed}",
        ]
        for f in r.failures:
            first = (f.error_detail or "").strip().splitlines()
            lines.append(f"  FAILED {f.module_id} ({f.display_name}): {first[0] if first else 'unknown error'}")
        lines.append(f"Total time: {r.duration_seconds:.1f}s")
        if r.dry_run:
            lines.append("Dry run: no changes were made")
        return lines

    def render(self) -> None:
        try:
            for line in self.summary_lines():
                logger.info(line)

            table = Table(title="Setup summary" + (" (dry run)" if self.report.dry_run else ""))
            table.add_column("Module")
            table.add_column("Result")
            table.add_column("Time", justify="right")
            for res in self.report.results:
                status = "[green]ok[/green]" if res.succeeded else f"[bold red]FAILED ({res.error_kind})[/bold red]"
                table.add_row(res.display_name, status, f"{res.duration_seconds:.1f}s")
            self.console.print(table)
            if self.report.failed:
                self.console.print(
                    f"[bold yellow]{self.report.failed} module(s) need attention; see the log for details.[/bold yellow]"
                )
        except Exception as e:
            logger.warning("Unable to render summary: %s", e)

    def write(self, path: Path) -> Optional[Path]:
        try:
            save_state(str(path), self.report.as_dict())
        except Exception as e:
            logger.warning("Unable to write run report %s: %s", path, e)
            return None
        logger.info("Run report written to %s", path)
        return path
