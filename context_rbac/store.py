"""
Persistence boundary for the authorization engine.

``Store`` lists every read and write the engine performs. ``DjangoStore``
implements it with the Django ORM on the models named by an EntityConfig.
Creates are insert-if-absent and deletes are delete-if-present, so callers
never need to check before writing.
"""

import logging
from abc import ABC, abstractmethod
from functools import reduce
from operator import or_
from typing import Any, ContextManager, Iterable, Optional

from django.db import models, transaction
from django.db.models import Q

from .config import EntityConfig
from .context import ContextRef, model_label

logger = logging.getLogger(__name__)


def subject_lookup(subject: models.Model) -> dict[str, str]:
    """Field lookups identifying ``subject`` on a subject grant row."""
    if subject.pk is None:
        raise ValueError(f"Cannot authorize an unsaved {model_label(subject)} instance")
    return {"subject_type": model_label(subject), "subject_id": str(subject.pk)}


def contexts_q(contexts: Iterable[ContextRef], prefix: str = "context") -> Q:
    """Q object matching any of ``contexts`` exactly."""
    return reduce(or_, (Q(**ctx.as_filter(prefix)) for ctx in contexts))


class Store(ABC):
    """Narrow persistence interface consumed by the resolver, grants and cascades."""

    @abstractmethod
    def atomic(self) -> ContextManager[Any]:
        """Transaction scope for multi-step writes."""

    # --- Lookup ---

    @abstractmethod
    def find_role(self, slug: str, context_type: Optional[str], context_id: Optional[str]):
        ...

    @abstractmethod
    def find_permission(
        self, slug: str, context_type: Optional[str], context_id: Optional[str]
    ):
        ...

    @abstractmethod
    def find_role_assignment(self, subject, role, context: ContextRef):
        ...

    @abstractmethod
    def find_permission_assignment(self, subject, permission, context: ContextRef):
        ...

    @abstractmethod
    def find_permission_role_assignment(self, role, permission, context: ContextRef):
        ...

    # --- Insert-if-absent ---

    @abstractmethod
    def create_role_assignment(self, subject, role, context: ContextRef):
        ...

    @abstractmethod
    def create_permission_assignment(self, subject, permission, context: ContextRef):
        ...

    @abstractmethod
    def create_permission_role_assignment(self, role, permission, context: ContextRef):
        ...

    # --- Delete-if-present ---

    @abstractmethod
    def delete_role_assignment(self, subject, role, context: ContextRef) -> int:
        ...

    @abstractmethod
    def delete_permission_assignment(self, subject, permission, context: ContextRef) -> int:
        ...

    @abstractmethod
    def delete_permission_role_assignment(self, role, permission, context: ContextRef) -> int:
        ...

    # --- Cascade primitives ---

    @abstractmethod
    def delete_roles_in_context(self, context: ContextRef) -> int:
        ...

    @abstractmethod
    def delete_permissions_in_context(self, context: ContextRef) -> int:
        ...

    @abstractmethod
    def delete_assignments_in_context(
        self, context: ContextRef, include_permissions: bool = True
    ) -> int:
        ...

    @abstractmethod
    def delete_assignments_of_role(self, role) -> int:
        ...

    @abstractmethod
    def delete_assignments_of_permission(self, permission) -> int:
        ...

    @abstractmethod
    def delete_assignments_of_subject(self, subject) -> int:
        ...

    # --- Enumeration ---

    @abstractmethod
    def roles_in_context(self, context: ContextRef) -> list:
        """Roles scoped to exactly ``context``."""

    @abstractmethod
    def permissions_in_context(self, context: ContextRef) -> list:
        ...

    @abstractmethod
    def roles_of_subject(self, subject, context: Optional[ContextRef] = None) -> list:
        ...

    @abstractmethod
    def permissions_of_subject(self, subject, context: Optional[ContextRef] = None) -> list:
        ...

    @abstractmethod
    def permissions_of_role(
        self, role, contexts: Optional[Iterable[ContextRef]] = None
    ) -> list:
        ...

    @abstractmethod
    def roles_with_permission(
        self, permission, contexts: Optional[Iterable[ContextRef]] = None
    ) -> list:
        ...


class DjangoStore(Store):
    """Store backed by the Django ORM."""

    def __init__(self, config: EntityConfig, using: Optional[str] = None):
        self.config = config
        self.using = using

    @property
    def role_model(self):
        return self.config.get_role_model()

    @property
    def permission_model(self):
        return self.config.get_permission_model()

    @property
    def role_assignment_model(self):
        return self.config.get_role_assignment_model()

    @property
    def permission_assignment_model(self):
        return self.config.get_permission_assignment_model()

    @property
    def permission_role_model(self):
        return self.config.get_permission_role_model()

    def _manager(self, model):
        manager = model._default_manager
        return manager.db_manager(self.using) if self.using else manager

    def atomic(self):
        return transaction.atomic(using=self.using)

    # --- Lookup ---

    def find_role(self, slug, context_type, context_id):
        return (
            self._manager(self.role_model)
            .filter(slug=slug, context_type=context_type, context_id=context_id)
            .first()
        )

    def find_permission(self, slug, context_type, context_id):
        return (
            self._manager(self.permission_model)
            .filter(slug=slug, context_type=context_type, context_id=context_id)
            .first()
        )

    def find_role_assignment(self, subject, role, context):
        return (
            self._manager(self.role_assignment_model)
            .filter(role=role, **subject_lookup(subject), **context.as_filter())
            .first()
        )

    def find_permission_assignment(self, subject, permission, context):
        return (
            self._manager(self.permission_assignment_model)
            .filter(permission=permission, **subject_lookup(subject), **context.as_filter())
            .first()
        )

    def find_permission_role_assignment(self, role, permission, context):
        return (
            self._manager(self.permission_role_model)
            .filter(role=role, permission=permission, **context.as_filter())
            .first()
        )

    # --- Insert-if-absent ---

    def create_role_assignment(self, subject, role, context):
        assignment, created = self._manager(self.role_assignment_model).get_or_create(
            role=role, **subject_lookup(subject), **context.as_filter()
        )
        if created:
            logger.info("Role '%s' assigned to %s in %s", role.slug, assignment.subject_type, context)
        return assignment

    def create_permission_assignment(self, subject, permission, context):
        assignment, created = self._manager(
            self.permission_assignment_model
        ).get_or_create(permission=permission, **subject_lookup(subject), **context.as_filter())
        if created:
            logger.info(
                "Permission '%s' assigned to %s in %s",
                permission.slug,
                assignment.subject_type,
                context,
            )
        return assignment

    def create_permission_role_assignment(self, role, permission, context):
        assignment, created = self._manager(self.permission_role_model).get_or_create(
            role=role, permission=permission, **context.as_filter()
        )
        if created:
            logger.info(
                "Permission '%s' granted to role '%s' in %s", permission.slug, role.slug, context
            )
        return assignment

    # --- Delete-if-present ---

    def delete_role_assignment(self, subject, role, context):
        deleted, _ = (
            self._manager(self.role_assignment_model)
            .filter(role=role, **subject_lookup(subject), **context.as_filter())
            .delete()
        )
        return deleted

    def delete_permission_assignment(self, subject, permission, context):
        deleted, _ = (
            self._manager(self.permission_assignment_model)
            .filter(permission=permission, **subject_lookup(subject), **context.as_filter())
            .delete()
        )
        return deleted

    def delete_permission_role_assignment(self, role, permission, context):
        deleted, _ = (
            self._manager(self.permission_role_model)
            .filter(role=role, permission=permission, **context.as_filter())
            .delete()
        )
        return deleted

    # --- Cascade primitives ---

    def delete_roles_in_context(self, context):
        # pre_delete still fires for every role, cascading its grants
        deleted, _ = self._manager(self.role_model).filter(**context.as_filter()).delete()
        return deleted

    def delete_permissions_in_context(self, context):
        deleted, _ = self._manager(self.permission_model).filter(**context.as_filter()).delete()
        return deleted

    def delete_assignments_in_context(self, context, include_permissions=True):
        models_to_clear = [self.role_assignment_model]
        if include_permissions:
            models_to_clear += [self.permission_assignment_model, self.permission_role_model]
        total = 0
        for model in models_to_clear:
            deleted, _ = self._manager(model).filter(**context.as_filter()).delete()
            total += deleted
        return total

    def delete_assignments_of_role(self, role):
        # Permission grants of the role are removed even without permission support
        total = 0
        for model in (self.role_assignment_model, self.permission_role_model):
            deleted, _ = self._manager(model).filter(role=role).delete()
            total += deleted
        return total

    def delete_assignments_of_permission(self, permission):
        total = 0
        for model in (self.permission_assignment_model, self.permission_role_model):
            deleted, _ = self._manager(model).filter(permission=permission).delete()
            total += deleted
        return total

    def delete_assignments_of_subject(self, subject):
        models_to_clear = [self.role_assignment_model]
        if self.config.with_permissions:
            models_to_clear.append(self.permission_assignment_model)
        total = 0
        for model in models_to_clear:
            deleted, _ = self._manager(model).filter(**subject_lookup(subject)).delete()
            total += deleted
        return total

    # --- Enumeration ---

    def roles_in_context(self, context):
        return list(self._manager(self.role_model).filter(**context.as_filter()))

    def permissions_in_context(self, context):
        return list(self._manager(self.permission_model).filter(**context.as_filter()))

    def roles_of_subject(self, subject, context=None):
        assignments = self._manager(self.role_assignment_model).filter(**subject_lookup(subject))
        if context is not None:
            assignments = assignments.filter(**context.as_filter())
        return list(
            self._manager(self.role_model).filter(
                pk__in=assignments.values("role_id")
            )
        )

    def permissions_of_subject(self, subject, context=None):
        assignments = self._manager(self.permission_assignment_model).filter(
            **subject_lookup(subject)
        )
        if context is not None:
            assignments = assignments.filter(**context.as_filter())
        return list(
            self._manager(self.permission_model).filter(
                pk__in=assignments.values("permission_id")
            )
        )

    def permissions_of_role(self, role, contexts=None):
        grants = self._manager(self.permission_role_model).filter(role=role)
        if contexts is not None:
            grants = grants.filter(contexts_q(contexts))
        return list(
            self._manager(self.permission_model).filter(
                pk__in=grants.values("permission_id")
            )
        )

    def roles_with_permission(self, permission, contexts=None):
        grants = self._manager(self.permission_role_model).filter(permission=permission)
        if contexts is not None:
            grants = grants.filter(contexts_q(contexts))
        return list(
            self._manager(self.role_model).filter(pk__in=grants.values("role_id"))
        )


__all__ = ["Store", "DjangoStore", "subject_lookup", "contexts_q"]
