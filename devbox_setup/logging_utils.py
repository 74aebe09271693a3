from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

FILE_FORMAT = "[%(asctime)s] %(message)s"
FILE_DATEFMT = "%H:%M:%S"


def configure_logging(
    log_path: str,
    level: int = logging.INFO,
    also_console: bool = True,
    force: bool = False,
) -> Optional[str]:
    """Configure logging for one run.

    Every line goes to an append-only file as ``[HH:MM:SS] message``, and to
    the console through rich (errors show in red).

    Notes:
    - If the requested file cannot be opened we fall back to the temp
      directory; if that fails too the run continues console-only and the
      problem is reported, not raised.

    Returns the actual file path being used (None when console-only).
    """

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(root, "_devbox_configured", False):
        if not force:
            return getattr(root, "_devbox_log_path", log_path)
        for h in getattr(root, "_devbox_handlers", []):
            root.removeHandler(h)
            h.close()

    handlers: List[logging.Handler] = []
    chosen_path: Optional[str] = None
    problem: Optional[str] = None

    for candidate in (Path(log_path), Path(tempfile.gettempdir()) / Path(log_path).name):
        try:
            candidate.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(candidate, mode="a", encoding="utf-8")
        except OSError as e:
            problem = f"{candidate}: {e}"
            continue
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATEFMT))
        handlers.append(file_handler)
        chosen_path = str(candidate)
        break

    if also_console:
        console = RichHandler(show_path=False, show_level=True, rich_tracebacks=False, markup=False)
        console.setFormatter(logging.Formatter("%(message)s", datefmt=FILE_DATEFMT))
        handlers.append(console)

    for h in handlers:
        root.addHandler(h)

    setattr(root, "_devbox_configured", True)
    setattr(root, "_devbox_log_path", chosen_path)
    setattr(root, "_devbox_handlers", handlers)

    log = logging.getLogger(__name__)
    if chosen_path is None:
        log.warning("Unable to open a log file (%s); logging to console only", problem)
    else:
        log.info("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
