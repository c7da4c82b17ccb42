from __future__ import annotations

from ..lib.node_ports import GATEWAY_PORT_KEY, read_port
from ..pipeline import SetupCtx


class DiscoverGatewayPortStep:
    step_id = "80_discover_gateway_port"

    def run(self, ctx: SetupCtx) -> None:
        ctx.gateway_port = read_port(ctx.cfg.ports_file, GATEWAY_PORT_KEY)
