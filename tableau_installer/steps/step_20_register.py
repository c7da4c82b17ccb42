from __future__ import annotations

from ..pipeline import SetupCtx


class RegisterStep:
    step_id = "20_register"

    def run(self, ctx: SetupCtx) -> None:
        ctx.results[self.step_id] = ctx.tsm.tsm("register", "--file", ctx.cfg.registration_file)
