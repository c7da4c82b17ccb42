from __future__ import annotations

import logging

from ..errors import RuntimeStateError
from ..pipeline import SetupCtx

logger = logging.getLogger(__name__)


class CreateAdminUserStep:
    step_id = "90_create_admin_user"

    def run(self, ctx: SetupCtx) -> None:
        if not ctx.gateway_port:
            raise RuntimeStateError("gateway port not discovered")

        user = ctx.secrets.tableau_server_admin_user
        password = ctx.secrets.tableau_server_admin_pass
        logger.info("Creating initial administrator %s", user)
        ctx.results[self.step_id] = ctx.tsm.tabcmd(
            "initialuser",
            "--server",
            f"localhost:{ctx.gateway_port}",
            "--username",
            user,
            "--password",
            password,
            secrets=(password,),
        )
