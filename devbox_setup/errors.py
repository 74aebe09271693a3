from __future__ import annotations


class SetupError(RuntimeError):
    """Base class for errors raised by devbox-setup itself."""


class ResolutionError(SetupError):
    """A module's entry point could not be located."""


class ModuleExecutionError(SetupError):
    """A module ran and failed (tool exit code, bad input, ...)."""


class HandoffError(SetupError):
    """An artifact expected from an earlier module is missing or unreadable."""


class PreconditionError(SetupError):
    """Startup requirement not met and not remediable; the run must not start."""


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, ResolutionError):
        return "resolution"
    if isinstance(exc, HandoffError):
        return "handoff"
    return "execution"
