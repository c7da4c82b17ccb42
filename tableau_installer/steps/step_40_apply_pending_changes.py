from __future__ import annotations

from ..pipeline import SetupCtx


class ApplyPendingChangesStep:
    step_id = "40_apply_pending_changes"

    def run(self, ctx: SetupCtx) -> None:
        ctx.results[self.step_id] = ctx.tsm.tsm("pending-changes", "apply", "--ignore-prompt")
