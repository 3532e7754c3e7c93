"""
Signal hooks driving cascading cleanup on deletion.
"""

import logging

from django.db import models
from django.db.models.signals import post_delete, pre_delete

from .cascade import CascadeManager
from .config import EntityConfig, EntityKind
from .context import ContextRef, model_label

logger = logging.getLogger(__name__)


def _registry():
    """Lazy import to avoid circular imports."""
    from .registry import authorization_registry

    return authorization_registry


def connect_grant_signals(config: EntityConfig) -> None:
    """Cascade deletions of the role (and permission) model used by ``config``."""
    role_model = config.get_role_model()
    pre_delete.connect(
        _role_pre_delete,
        sender=role_model,
        dispatch_uid=f"context_rbac.cascade.role.{model_label(role_model)}",
    )
    if config.with_permissions:
        permission_model = config.get_permission_model()
        pre_delete.connect(
            _permission_pre_delete,
            sender=permission_model,
            dispatch_uid=f"context_rbac.cascade.permission.{model_label(permission_model)}",
        )


def connect_context_signals(model: type[models.Model]) -> None:
    post_delete.connect(
        _entity_post_delete,
        sender=model,
        dispatch_uid=f"context_rbac.cascade.context.{model_label(model)}",
    )


def disconnect_context_signals(model: type[models.Model]) -> None:
    post_delete.disconnect(
        sender=model,
        dispatch_uid=f"context_rbac.cascade.context.{model_label(model)}",
    )


def connect_subject_signals(model: type[models.Model]) -> None:
    post_delete.connect(
        _entity_post_delete,
        sender=model,
        dispatch_uid=f"context_rbac.cascade.subject.{model_label(model)}",
    )


def disconnect_subject_signals(model: type[models.Model]) -> None:
    post_delete.disconnect(
        sender=model,
        dispatch_uid=f"context_rbac.cascade.subject.{model_label(model)}",
    )


def _role_pre_delete(sender, instance, **kwargs) -> None:
    config = _registry().grant_config_for(sender)
    CascadeManager(config).on_role_destroyed(instance)


def _permission_pre_delete(sender, instance, **kwargs) -> None:
    config = _registry().grant_config_for(sender)
    CascadeManager(config).on_permission_destroyed(instance)


def _entity_post_delete(sender, instance, **kwargs) -> None:
    # The primary key is still set here; Django clears it after post_delete.
    config = _registry().get_config(sender)
    if config is None:
        return
    manager = CascadeManager(config)
    if config.kind is EntityKind.CONTEXT:
        manager.on_context_destroyed(ContextRef.parse(instance))
    elif config.kind is EntityKind.SUBJECT:
        manager.on_subject_destroyed(instance)
