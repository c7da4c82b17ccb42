from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from .config import InstallConfig
from .credentials import Secrets
from .lib.command import CmdResult
from .tsm import ServerStatus, TsmClient

logger = logging.getLogger(__name__)


@dataclass
class SetupCtx:
    """Everything the post-install steps read, plus what they discover."""

    cfg: InstallConfig
    secrets: Secrets
    tsm: TsmClient
    results: Dict[str, CmdResult] = field(default_factory=dict)
    status: Optional[ServerStatus] = None
    gateway_port: Optional[int] = None
    warnings: List[str] = field(default_factory=list)


class Step(Protocol):
    """A single post-install step."""

    step_id: str

    def run(self, ctx: SetupCtx) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ctx: SetupCtx
    ran_steps: List[str]


def run_pipeline(*, ctx: SetupCtx, steps: Sequence[Step]) -> PipelineResult:
    """Run steps strictly in order. The first exception aborts the rest."""

    ran: List[str] = []
    for step in steps:
        logger.info("Running step %s", step.step_id)
        try:
            step.run(ctx)
        except Exception:
            logger.error("Step %s failed after %s", step.step_id, ran or "no completed steps")
            raise
        ran.append(step.step_id)

    return PipelineResult(ctx=ctx, ran_steps=ran)
