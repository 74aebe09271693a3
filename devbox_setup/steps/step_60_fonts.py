from __future__ import annotations

import logging
from typing import Optional

from ..context import ModuleContext
from ..lib.pkg import ensure_package

logger = logging.getLogger(__name__)


class FontsStep:
    step_id = "fonts"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        package = ctx.config.font_package
        if ensure_package(ctx, package):
            return f"installed {package}"
        return f"{package} already installed"
