from __future__ import annotations

import logging
import subprocess
import sys
import time
import traceback
from typing import Any, Dict, Optional, Protocol

from .catalog import ModuleDescriptor
from .context import ModuleContext
from .dry_run import INTENT_PREFIX
from .errors import ModuleExecutionError, ResolutionError, error_kind
from .report import ModuleResult

logger = logging.getLogger(__name__)

TRACE_FRAMES = 3


class Module(Protocol):
    """A single idempotent provisioning unit."""

    def run(self, ctx: ModuleContext, **params: Any) -> Optional[str]:
        ...


def _trace_fragment(exc: BaseException) -> str:
    frames = traceback.format_exception(type(exc), exc, exc.__traceback__)
    # Keep the header, the innermost frames and the message line.
    if len(frames) > TRACE_FRAMES + 2:
        frames = frames[:1] + frames[-(TRACE_FRAMES + 1):]
    return "".join(frames).rstrip()


def _params_for(descriptor: ModuleDescriptor, ctx: ModuleContext) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for name in descriptor.params:
        if not hasattr(ctx.paths, name):
            raise ResolutionError(f"Module {descriptor.id} needs unknown parameter {name!r}")
        params[name] = getattr(ctx.paths, name)
    return params


def _run_process(target: str, ctx: ModuleContext) -> Optional[str]:
    argv = [sys.executable, "-m", target]
    logger.info("[%s] child process: %s", ctx.module_id, " ".join(argv))

    # The child inherits DEVBOX_SETUP_DRY_RUN from this process.
    p = subprocess.run(argv, text=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    for line in (p.stdout or "").splitlines():
        if line.startswith(INTENT_PREFIX):
            ctx.intents.append(line[len(INTENT_PREFIX):].strip())
        logger.info("[%s] %s", ctx.module_id, line)
    if p.returncode != 0:
        raise ModuleExecutionError(
            f"{target} exited with {p.returncode}: {(p.stderr or '').strip() or 'no error output'}"
        )
    return None


def run_module(descriptor: ModuleDescriptor, ctx: ModuleContext) -> ModuleResult:
    """Run one module and turn whatever happens into a ModuleResult. Never raises (except interrupts)."""

    mctx = ctx.for_module(descriptor.id)
    logger.info(">>> %s (%s)", descriptor.display_name, mctx.dry_run.label)

    try:
        impl = descriptor.entry_point.resolve()
        params = _params_for(descriptor, mctx)
    except ResolutionError as e:
        logger.error("<<< %s: not resolvable: %s", descriptor.display_name, e)
        return ModuleResult(
            module_id=descriptor.id,
            display_name=descriptor.display_name,
            succeeded=False,
            duration_seconds=0.0,
            error_kind="resolution",
            error_detail=str(e),
        )

    t0 = time.monotonic()
    detail: Optional[str] = None
    outcome: Optional[str] = None
    kind: Optional[str] = None
    try:
        if descriptor.entry_point.kind == "process":
            outcome = _run_process(impl, mctx)
        else:
            module = impl() if isinstance(impl, type) else impl
            outcome = module.run(mctx, **params)
    except Exception as e:
        kind = error_kind(e)
        detail = f"{e}\n{_trace_fragment(e)}"
    finally:
        elapsed = time.monotonic() - t0

    if kind is None:
        logger.info("<<< %s: ok (%.1fs)%s", descriptor.display_name, elapsed, f" - {outcome}" if outcome else "")
    else:
        logger.error("<<< %s: FAILED (%.1fs) [%s] %s", descriptor.display_name, elapsed, kind, (detail or "").splitlines()[0])
        logger.debug("%s", detail)

    return ModuleResult(
        module_id=descriptor.id,
        display_name=descriptor.display_name,
        succeeded=kind is None,
        duration_seconds=max(0.0, elapsed),
        error_kind=kind,
        error_detail=detail,
        intents=tuple(mctx.intents),
    )
