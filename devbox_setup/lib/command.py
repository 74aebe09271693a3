from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _spawn(
    argv_list: list[str],
    *,
    env: Mapping[str, str] | None,
    cwd: str | None,
    input_text: str | None,
) -> subprocess.CompletedProcess:
    return subprocess.run(
        argv_list,
        input=input_text,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=dict(os.environ, **(env or {})),
    )


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command that changes machine state.

    - Always logs the command.
    - dry_run logs but does not execute.
    - check raises RuntimeError on a non-zero exit.
    """

    argv_list = list(argv)
    if dry_run:
        logger.info("Would run: %s", fmt_argv(argv_list))
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    logger.info("CMD %s", fmt_argv(argv_list))
    p = _spawn(argv_list, env=env, cwd=cwd, input_text=input_text)

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        detail = (p.stderr or p.stdout or "").strip()
        raise RuntimeError(f"Command failed ({p.returncode}): {fmt_argv(argv_list)}\n{detail}")

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def probe_cmd(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> Optional[CmdResult]:
    """Run a read-only inspection command, in dry-run and live mode alike.

    Returns None when the program cannot be launched at all (not installed,
    not permitted). Never raises on a non-zero exit.
    """

    argv_list = list(argv)
    logger.debug("PROBE %s", fmt_argv(argv_list))
    try:
        p = _spawn(argv_list, env=env, cwd=cwd, input_text=None)
    except OSError as e:
        logger.debug("Probe unavailable (%s): %s", e, fmt_argv(argv_list))
        return None
    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")
