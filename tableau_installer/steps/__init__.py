from .step_10_activate_license import ActivateLicenseStep
from .step_20_register import RegisterStep
from .step_30_import_config import ImportConfigStep
from .step_40_apply_pending_changes import ApplyPendingChangesStep
from .step_50_initialize_start import InitializeStartStep
from .step_60_check_status import CheckStatusStep
from .step_70_propagation_delay import PropagationDelayStep
from .step_80_discover_gateway_port import DiscoverGatewayPortStep
from .step_90_create_admin_user import CreateAdminUserStep

__all__ = [
    "ActivateLicenseStep",
    "RegisterStep",
    "ImportConfigStep",
    "ApplyPendingChangesStep",
    "InitializeStartStep",
    "CheckStatusStep",
    "PropagationDelayStep",
    "DiscoverGatewayPortStep",
    "CreateAdminUserStep",
]
