"""Developer workstation setup (module-driven, dry-run aware).

Core design goals:
- Fixed module order, one module at a time
- Idempotent modules, safe to re-run
- One failing module never stops the rest
- Dry-run previews every mutation as an intent
- Centralized logging and a persisted run report
"""

__all__ = []
