"""
Cascading cleanup when roles, permissions or contexts are destroyed.

Assignment rows only reference roles and permissions by key, and scoped
roles and permissions only reference their context by convention, so the
database does not remove dependents by itself. CascadeManager does, and is
driven by the delete signals wired in ``context_rbac.signals``.
"""

import logging
from typing import Optional

from .config import EntityConfig
from .context import ContextInput, ContextRef
from .store import DjangoStore, Store

logger = logging.getLogger(__name__)


class CascadeManager:
    """Removes grants and scoped records that depend on a destroyed object."""

    def __init__(self, config: EntityConfig, store: Optional[Store] = None):
        self.config = config
        self.store = store or DjangoStore(config)

    def on_role_destroyed(self, role) -> int:
        """Delete every subject grant and permission grant of ``role``."""
        deleted = self.store.delete_assignments_of_role(role)
        if deleted:
            logger.info("Removed %s grant(s) of destroyed role '%s'", deleted, role.slug)
        return deleted

    def on_permission_destroyed(self, permission) -> int:
        """Delete every subject grant and role grant of ``permission``."""
        deleted = self.store.delete_assignments_of_permission(permission)
        if deleted:
            logger.info(
                "Removed %s grant(s) of destroyed permission '%s'", deleted, permission.slug
            )
        return deleted

    def on_subject_destroyed(self, subject) -> int:
        """Delete every role and permission grant held by ``subject``."""
        deleted = self.store.delete_assignments_of_subject(subject)
        if deleted:
            logger.info("Removed %s grant(s) of destroyed subject %s#%s", deleted, subject._meta.label, subject.pk)
        return deleted

    def on_context_destroyed(self, context: ContextInput) -> int:
        """
        Tear down everything scoped to ``context``.

        Grants recorded in the context go first, then the roles and
        permissions scoped to it, each after its own grants elsewhere have
        been removed. Both phases share one transaction; a store failure
        propagates and rolls the whole teardown back.
        """
        ref = ContextRef.parse(context)
        if ref.is_global:
            raise ValueError("The global context cannot be destroyed")

        with self.store.atomic():
            removed = self.store.delete_assignments_in_context(
                ref, include_permissions=self.config.with_permissions
            )
            for role in self.store.roles_in_context(ref):
                removed += self.on_role_destroyed(role)
            removed += self.store.delete_roles_in_context(ref)
            if self.config.with_permissions:
                for permission in self.store.permissions_in_context(ref):
                    removed += self.on_permission_destroyed(permission)
                removed += self.store.delete_permissions_in_context(ref)

        logger.info("Context %s destroyed, %s dependent row(s) removed", ref, removed)
        return removed


__all__ = ["CascadeManager"]
