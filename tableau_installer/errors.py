from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .lib.command import CmdResult


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class InstallerError(RuntimeError):
    """Base class for every fatal installer condition.

    Each subclass maps to one process exit code; ``main()`` logs the message
    and returns ``exit_code``.
    """

    exit_code = EXIT_FAILURE


class UsageError(InstallerError):
    """Bad, missing or unknown command line flags."""

    exit_code = EXIT_USAGE


class PreconditionError(InstallerError):
    """Missing file, missing EULA acceptance, missing secret, not root."""

    def __init__(self, message: str, *, remediation: Optional[str] = None) -> None:
        self.remediation = remediation
        if remediation:
            message = f"{message}\n{remediation}"
        super().__init__(message)


class DelegatedToolError(InstallerError):
    """A native installer or vendor tool exited non-zero."""

    def __init__(self, message: str, *, result: Optional["CmdResult"] = None) -> None:
        self.result = result
        super().__init__(message)


class RuntimeStateError(InstallerError):
    """The server reached a state the workflow cannot continue from."""
