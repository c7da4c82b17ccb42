from __future__ import annotations

import logging
import time

from ..pipeline import SetupCtx

logger = logging.getLogger(__name__)


PROPAGATION_DELAY_S = 30


class PropagationDelayStep:
    step_id = "70_propagation_delay"

    def run(self, ctx: SetupCtx) -> None:
        logger.info("Waiting %ds for configuration to reach all services", PROPAGATION_DELAY_S)
        time.sleep(PROPAGATION_DELAY_S)
