"""Tableau Server automated installer.

Core design goals:
- Fail fast: every input is validated before the host is touched
- One immutable configuration record passed to every component
- Delegated tools run as the invoking user, never as root
- Secrets are parsed, never executed, and never logged
- Centralized logging
"""

__all__ = []
