"""
Per-entity authorization configuration.

Every model taking part in authorization (subjects, roles, permissions and
contexts) is registered once with an EntityConfig. The config is plain data
handed to the services built for that entity; nothing is mixed into the
model class itself.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from django.apps import apps
from django.db import models

from .config_proxy import get_setting


class EntityKind(Enum):
    """Role an entity plays in authorization."""

    SUBJECT = "subject"
    ROLE = "role"
    PERMISSION = "permission"
    CONTEXT = "context"


MODEL_SETTING_KEYS = (
    "role_model",
    "permission_model",
    "role_assignment_model",
    "permission_assignment_model",
    "permission_role_model",
)


@dataclass(frozen=True)
class EntityConfig:
    """Authorization configuration for one entity type."""

    kind: EntityKind
    model_label: Optional[str] = None
    role_model: str = "context_rbac.Role"
    permission_model: str = "context_rbac.Permission"
    role_assignment_model: str = "context_rbac.RoleAssignment"
    permission_assignment_model: str = "context_rbac.PermissionAssignment"
    permission_role_model: str = "context_rbac.PermissionRoleAssignment"
    with_permissions: bool = True

    @classmethod
    def from_settings(
        cls, kind: EntityKind, model_label: Optional[str] = None, **overrides: Any
    ) -> "EntityConfig":
        """Build a config from the library settings, then apply ``overrides``."""
        values: dict[str, Any] = {
            key: get_setting(f"models.{key}") for key in MODEL_SETTING_KEYS
        }
        values["with_permissions"] = bool(get_setting("with_permissions", True))
        unknown = set(overrides) - set(values)
        if unknown:
            raise TypeError(f"Unknown authorization options: {', '.join(sorted(unknown))}")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(kind=kind, model_label=model_label, **values)

    def with_options(self, **options: Any) -> "EntityConfig":
        return replace(self, **options)

    def get_role_model(self) -> type[models.Model]:
        return apps.get_model(self.role_model)

    def get_permission_model(self) -> type[models.Model]:
        return apps.get_model(self.permission_model)

    def get_role_assignment_model(self) -> type[models.Model]:
        return apps.get_model(self.role_assignment_model)

    def get_permission_assignment_model(self) -> type[models.Model]:
        return apps.get_model(self.permission_assignment_model)

    def get_permission_role_model(self) -> type[models.Model]:
        return apps.get_model(self.permission_role_model)


__all__ = ["EntityKind", "EntityConfig", "MODEL_SETTING_KEYS"]
