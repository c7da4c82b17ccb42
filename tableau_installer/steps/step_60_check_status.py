from __future__ import annotations

import logging

from ..errors import RuntimeStateError
from ..pipeline import SetupCtx
from ..tsm import ServerStatus

logger = logging.getLogger(__name__)


class CheckStatusStep:
    step_id = "60_check_status"

    def run(self, ctx: SetupCtx) -> None:
        status = ctx.tsm.status()
        ctx.status = status

        if status is ServerStatus.RUNNING:
            logger.info("Tableau Server is RUNNING")
            return
        if status is ServerStatus.DEGRADED:
            msg = "Tableau Server is DEGRADED; continuing, check 'tsm status -v' once setup finishes"
            logger.warning(msg)
            ctx.warnings.append(msg)
            return
        raise RuntimeStateError(f"Tableau Server failed to start (status {status.value})")
