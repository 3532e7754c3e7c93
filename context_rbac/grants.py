"""
Grant services: assignment, revocation and authorization queries.

GrantService covers roles. PermissionGrantService adds the permission API
and is only built for entities configured with permissions, so an entity
without permission support has no ``allowed_to`` at all rather than one
that always answers False.
"""

import logging
from typing import Any, Optional

from django.db import models

from .config import EntityConfig
from .config_proxy import get_setting
from .context import ContextInput, ContextRef
from .exceptions import ArgumentError, ResolutionError
from .resolver import Resolver, verify_context
from .store import DjangoStore, Store

logger = logging.getLogger(__name__)


class GrantService:
    """Role assignment and role-based authorization for one entity type."""

    def __init__(
        self,
        config: EntityConfig,
        store: Optional[Store] = None,
        resolver: Optional[Resolver] = None,
    ):
        self.config = config
        self.store = store or DjangoStore(config)
        self.resolver = resolver or Resolver(config, self.store)

    def _log_decision(self, check: str, subject: models.Model, target: Any, context, allowed: bool):
        if get_setting("logging_settings.log_decisions", False):
            logger.info(
                "%s(%s#%s, %s, %s) -> %s",
                check,
                subject._meta.label,
                subject.pk,
                target,
                ContextRef.parse(context),
                allowed,
            )

    def _require_role(self, role: Any, context: ContextInput):
        target = self.resolver.resolve_role(role, context)
        if target is None:
            raise ResolutionError(
                f"Role '{role}' does not exist in {ContextRef.parse(context)}",
                identifier=role,
                context=context,
                kind="role",
            )
        return target

    # --- Role assignment ---

    def assign_role(self, subject: models.Model, role: Any, context: ContextInput = None):
        """
        Assign ``role`` to ``subject`` within ``context``.

        Re-assigning an existing grant returns the stored row. Raises
        ResolutionError if the role cannot be resolved.
        """
        target = self._require_role(role, context)
        return self.store.create_role_assignment(subject, target, ContextRef.parse(context))

    def revoke_role(self, subject: models.Model, role: Any, context: ContextInput = None) -> bool:
        """Remove the grant of ``role`` to ``subject`` in ``context``; False if there was none."""
        target = self.resolver.resolve_role(role, context)
        if target is None:
            return False
        deleted = self.store.delete_role_assignment(subject, target, ContextRef.parse(context))
        if deleted:
            logger.info("Role '%s' revoked in %s", target.slug, ContextRef.parse(context))
        return bool(deleted)

    # --- Role queries ---

    def has_role(self, subject: models.Model, role: Any, context: ContextInput = None) -> bool:
        """
        Whether ``subject`` holds ``role`` in ``context``.

        The role's own context is re-verified on every call instead of
        trusting the context recorded on the assignment.
        """
        target = self.resolver.resolve_role(role, context)
        if not verify_context(target, context):
            return False
        return (
            self.store.find_role_assignment(subject, target, ContextRef.parse(context))
            is not None
        )

    def has_role_or_higher(
        self, subject: models.Model, role: Any, context: ContextInput = None
    ) -> bool:
        """Whether ``subject`` holds ``role`` or any role with at least its level in ``context``."""
        target = self.resolver.resolve_role(role, context)
        if target is None:
            return False
        if self.has_role(subject, target, context):
            return True
        return any(held.level >= target.level for held in self.roles_for(subject, context))

    def roles_for(self, subject: models.Model, context: ContextInput = None) -> list:
        """Roles held by ``subject`` in ``context``, most privileged first."""
        ref = ContextRef.parse(context)
        roles = [
            role
            for role in self.store.roles_of_subject(subject, ref)
            if verify_context(role, ref)
        ]
        return sorted(roles, key=lambda role: role.level, reverse=True)

    def highest_role(self, subject: models.Model, context: ContextInput = None):
        roles = self.roles_for(subject, context)
        return roles[0] if roles else None

    def allowed(
        self,
        subject: Optional[models.Model] = None,
        role: Any = None,
        context: ContextInput = None,
    ) -> bool:
        """Gate on ``has_role``; subject and role are both required."""
        if subject is None or role is None:
            raise ArgumentError("allowed() requires a subject and a role")
        result = self.has_role(subject, role, context)
        self._log_decision("allowed", subject, role, context, result)
        return result


class PermissionGrantService(GrantService):
    """GrantService with permission assignment and permission checks."""

    def _require_permission(self, permission: Any, context: ContextInput):
        target = self.resolver.resolve_permission(permission, context)
        if target is None:
            raise ResolutionError(
                f"Permission '{permission}' does not exist in {ContextRef.parse(context)}",
                identifier=permission,
                context=context,
                kind="permission",
            )
        return target

    # --- Subject permissions ---

    def assign_permission(
        self, subject: models.Model, permission: Any, context: ContextInput = None
    ):
        target = self._require_permission(permission, context)
        return self.store.create_permission_assignment(
            subject, target, ContextRef.parse(context)
        )

    def revoke_permission(
        self, subject: models.Model, permission: Any, context: ContextInput = None
    ) -> bool:
        target = self.resolver.resolve_permission(permission, context)
        if target is None:
            return False
        deleted = self.store.delete_permission_assignment(
            subject, target, ContextRef.parse(context)
        )
        if deleted:
            logger.info("Permission '%s' revoked in %s", target.slug, ContextRef.parse(context))
        return bool(deleted)

    def has_permission(
        self, subject: models.Model, permission: Any, context: ContextInput = None
    ) -> bool:
        """
        Whether ``subject`` holds ``permission`` in ``context``.

        Holds either through a direct assignment in ``context`` or through a
        role held in ``context`` that was granted the permission in
        ``context`` or anywhere above it.
        """
        ref = ContextRef.parse(context)
        target = self.resolver.resolve_permission(permission, ref)
        if not verify_context(target, ref):
            return False
        if self.store.find_permission_assignment(subject, target, ref) is not None:
            return True

        held = {role.pk for role in self.roles_for(subject, ref)}
        if not held:
            return False
        granting = self.store.roles_with_permission(target, ref.chain())
        return any(role.pk in held for role in granting)

    def permissions_for(self, subject: models.Model, context: ContextInput = None) -> list:
        """Permissions ``subject`` holds in ``context``, direct and through roles."""
        ref = ContextRef.parse(context)
        found = {}
        for permission in self.store.permissions_of_subject(subject, ref):
            found[permission.pk] = permission
        for role in self.roles_for(subject, ref):
            for permission in self.store.permissions_of_role(role, ref.chain()):
                found.setdefault(permission.pk, permission)
        return sorted(
            (p for p in found.values() if verify_context(p, ref)),
            key=lambda permission: permission.slug,
        )

    def allowed_to(
        self,
        subject: Optional[models.Model] = None,
        permission: Any = None,
        context: ContextInput = None,
    ) -> bool:
        """Gate on ``has_permission``; subject and permission are both required."""
        if subject is None or permission is None:
            raise ArgumentError("allowed_to() requires a subject and a permission")
        result = self.has_permission(subject, permission, context)
        self._log_decision("allowed_to", subject, permission, context, result)
        return result

    # --- Role permissions ---

    def assign_permission_to_role(self, role: Any, permission: Any, context: ContextInput = None):
        """Grant ``permission`` to ``role`` within ``context``; idempotent."""
        target_role = self._require_role(role, context)
        target = self._require_permission(permission, context)
        return self.store.create_permission_role_assignment(
            target_role, target, ContextRef.parse(context)
        )

    def revoke_permission_from_role(
        self, role: Any, permission: Any, context: ContextInput = None
    ) -> bool:
        target_role = self.resolver.resolve_role(role, context)
        target = self.resolver.resolve_permission(permission, context)
        if target_role is None or target is None:
            return False
        deleted = self.store.delete_permission_role_assignment(
            target_role, target, ContextRef.parse(context)
        )
        return bool(deleted)

    def role_has_permission(self, role: Any, permission: Any, context: ContextInput = None) -> bool:
        """Whether ``role`` was granted ``permission`` in ``context`` or above it."""
        ref = ContextRef.parse(context)
        target_role = self.resolver.resolve_role(role, ref)
        target = self.resolver.resolve_permission(permission, ref)
        if not verify_context(target, ref) or target_role is None:
            return False
        return any(
            self.store.find_permission_role_assignment(target_role, target, candidate)
            is not None
            for candidate in ref.chain()
        )


def build_grant_service(config: EntityConfig, store: Optional[Store] = None) -> GrantService:
    """Build the grant service matching the entity's capabilities."""
    service_class = PermissionGrantService if config.with_permissions else GrantService
    return service_class(config, store=store)


__all__ = ["GrantService", "PermissionGrantService", "build_grant_service"]
