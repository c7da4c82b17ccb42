from __future__ import annotations

import logging

from ..pipeline import SetupCtx

logger = logging.getLogger(__name__)


class ActivateLicenseStep:
    step_id = "10_activate_license"

    def run(self, ctx: SetupCtx) -> None:
        key = ctx.cfg.license_key
        if key:
            logger.info("Activating license key")
            ctx.results[self.step_id] = ctx.tsm.tsm("licenses", "activate", "--license-key", key)
        else:
            logger.info("No license key supplied, activating a trial")
            ctx.results[self.step_id] = ctx.tsm.tsm("licenses", "activate", "--trial")
