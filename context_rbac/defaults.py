"""
Default configuration for the context-rbac library.

This module exposes the single source of truth for every setting the
library consumes. Projects override any of them through the
``CONTEXT_RBAC`` dictionary in their Django settings.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "django-context-rbac"


# --------------------------------------------------------------------------- #
# Library-wide defaults
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    # Whether entities get permission support unless they say otherwise
    "with_permissions": True,
    "models": {
        "role_model": "context_rbac.Role",
        "permission_model": "context_rbac.Permission",
        "role_assignment_model": "context_rbac.RoleAssignment",
        "permission_assignment_model": "context_rbac.PermissionAssignment",
        "permission_role_model": "context_rbac.PermissionRoleAssignment",
    },
    # Model labels registered at startup, each mapped to its options
    "subjects": {},
    "contexts": {},
    "cascade_settings": {
        "enable_cascade_signals": True,
    },
    "logging_settings": {
        "log_decisions": False,
        "log_resolution": False,
    },
}


__all__ = ["LIBRARY_DEFAULTS", "LIBRARY_VERSION", "LIBRARY_NAME"]
