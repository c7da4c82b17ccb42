from __future__ import annotations

from ..pipeline import SetupCtx


class ImportConfigStep:
    step_id = "30_import_config"

    def run(self, ctx: SetupCtx) -> None:
        # TODO: drop --force-keys once settings import stops rejecting keys it already has.
        ctx.results[self.step_id] = ctx.tsm.tsm(
            "settings",
            "import",
            "-f",
            ctx.cfg.config_file,
            "--config-only",
            "--force-keys",
        )
