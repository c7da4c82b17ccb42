from __future__ import annotations

import logging

from ..pipeline import SetupCtx
from ..tsm import START_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class InitializeStartStep:
    step_id = "50_initialize_start"

    def run(self, ctx: SetupCtx) -> None:
        # First boot can take well over half an hour on small machines.
        logger.info("Initializing and starting Tableau Server (request timeout %ds)", START_REQUEST_TIMEOUT)
        ctx.results[self.step_id] = ctx.tsm.tsm(
            "initialize",
            "--start-server",
            "--request-timeout",
            str(START_REQUEST_TIMEOUT),
        )
