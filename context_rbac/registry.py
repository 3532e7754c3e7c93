"""
Registry of entities taking part in authorization.

Models are registered once, at startup, as subjects, roles, permissions or
contexts. The registry keeps their EntityConfig and hands out the services
built from it, so configuration is threaded explicitly through every call
instead of living on the model classes.

Quick Start:
    >>> from context_rbac.registry import authorization_registry as registry
    >>> registry.register_subject(User)
    >>> registry.register_context(Project)
    >>> registry.grant_service(User).assign_role(user, "admin", project)
    >>> registry.gate(project).allowed(user, "admin")
    True
"""

import logging
from typing import Any, Optional, Union

from django.apps import apps
from django.db import models

from .capabilities import ContextGate, PermissionContextGate
from .cascade import CascadeManager
from .config import EntityConfig, EntityKind
from .config_proxy import get_setting
from .context import model_label
from .exceptions import CapabilityError
from .grants import GrantService, PermissionGrantService, build_grant_service

logger = logging.getLogger(__name__)

ModelRef = Union[str, type[models.Model], models.Model]


def _label_of(model: ModelRef) -> str:
    if isinstance(model, str):
        return apps.get_model(model)._meta.label
    return model_label(model)


class AuthorizationRegistry:
    """Holds per-entity configuration and the services built from it."""

    def __init__(self):
        self._configs: dict[str, EntityConfig] = {}
        self._services: dict[str, GrantService] = {}
        # Role/permission model label -> config used to cascade its deletion
        self._grant_configs: dict[str, EntityConfig] = {}
        self._default_config: Optional[EntityConfig] = None

    # --- Registration ---

    def register(self, model: ModelRef, kind: EntityKind, **options: Any) -> EntityConfig:
        """Register ``model`` as an entity of ``kind``; re-registering replaces the config."""
        label = _label_of(model)
        config = EntityConfig.from_settings(kind, model_label=label, **options)
        self._configs[label] = config
        self._services.pop(label, None)
        self._track_grant_models(config)
        self._connect_entity(label, kind)
        logger.debug("Registered %s as authorization %s", label, kind.value)
        return config

    def register_subject(self, model: ModelRef, **options: Any) -> EntityConfig:
        return self.register(model, EntityKind.SUBJECT, **options)

    def register_context(self, model: ModelRef, **options: Any) -> EntityConfig:
        return self.register(model, EntityKind.CONTEXT, **options)

    def register_role(self, model: ModelRef, **options: Any) -> EntityConfig:
        options.setdefault("role_model", _label_of(model))
        return self.register(model, EntityKind.ROLE, **options)

    def register_permission(self, model: ModelRef, **options: Any) -> EntityConfig:
        options.setdefault("permission_model", _label_of(model))
        return self.register(model, EntityKind.PERMISSION, **options)

    def unregister(self, model: ModelRef) -> None:
        label = _label_of(model)
        config = self._configs.pop(label, None)
        self._services.pop(label, None)
        if config is None:
            return
        from .signals import disconnect_context_signals, disconnect_subject_signals

        if config.kind is EntityKind.CONTEXT:
            disconnect_context_signals(apps.get_model(label))
        elif config.kind is EntityKind.SUBJECT:
            disconnect_subject_signals(apps.get_model(label))

    def is_registered(self, model: ModelRef, kind: Optional[EntityKind] = None) -> bool:
        config = self._configs.get(_label_of(model))
        return config is not None and (kind is None or config.kind is kind)

    def load_from_settings(self) -> int:
        """Register the subjects and contexts listed in ``CONTEXT_RBAC``."""
        registered = 0
        for setting_key, kind in (("subjects", EntityKind.SUBJECT), ("contexts", EntityKind.CONTEXT)):
            entries = get_setting(setting_key, {}) or {}
            if isinstance(entries, (list, tuple)):
                entries = {label: {} for label in entries}
            for label, options in entries.items():
                try:
                    self.register(label, kind, **(options or {}))
                    registered += 1
                except LookupError as exc:
                    logger.warning("Skipping unknown %s model '%s': %s", kind.value, label, exc)
        return registered

    def clear(self) -> None:
        """Forget every registration (used by tests)."""
        for label in list(self._configs):
            self.unregister(label)
        self._configs.clear()
        self._services.clear()
        self._grant_configs.clear()
        self._default_config = None

    # --- Lookup ---

    @property
    def default_config(self) -> EntityConfig:
        """Config used for entities that were never registered."""
        if self._default_config is None:
            self._default_config = EntityConfig.from_settings(EntityKind.SUBJECT)
            self._track_grant_models(self._default_config)
        return self._default_config

    def get_config(self, model: ModelRef) -> Optional[EntityConfig]:
        return self._configs.get(_label_of(model))

    def config_for(self, model: ModelRef, kind: Optional[EntityKind] = None) -> EntityConfig:
        """Return the config of a registered entity, raising CapabilityError otherwise."""
        label = _label_of(model)
        config = self._configs.get(label)
        if config is None or (kind is not None and config.kind is not kind):
            expected = kind.value if kind else "entity"
            raise CapabilityError(
                f"{label} is not registered as an authorization {expected}",
                entity=label,
                capability=expected,
            )
        return config

    def grant_config_for(self, model: ModelRef) -> EntityConfig:
        """Config owning the role or permission model ``model``."""
        return self._grant_configs.get(_label_of(model), self.default_config)

    # --- Services ---

    def grant_service(self, model: Optional[ModelRef] = None) -> GrantService:
        """
        Grant service for a registered entity, or the default one.

        The returned object only exposes permission operations when the
        entity was configured with permissions.
        """
        if model is None:
            return self._service_for("", self.default_config)
        label = _label_of(model)
        return self._service_for(label, self.config_for(label))

    def permission_service(self, model: Optional[ModelRef] = None) -> PermissionGrantService:
        service = self.grant_service(model)
        if not isinstance(service, PermissionGrantService):
            label = service.config.model_label or "default"
            raise CapabilityError(
                f"{label} is configured without permissions",
                entity=label,
                capability="permissions",
            )
        return service

    def cascade_manager(self, model: ModelRef) -> CascadeManager:
        return CascadeManager(self.config_for(model))

    def gate(self, context: models.Model) -> ContextGate:
        """
        Context-bound authorization gate for a registered context instance.

        The gate has ``allowed_to`` only when the context model was
        registered with permissions.
        """
        config = self.config_for(type(context), EntityKind.CONTEXT)
        service = self._service_for(config.model_label, config)
        gate_class = PermissionContextGate if config.with_permissions else ContextGate
        return gate_class(service, context)

    def _service_for(self, label: str, config: EntityConfig) -> GrantService:
        service = self._services.get(label)
        if service is None:
            service = build_grant_service(config)
            self._services[label] = service
        return service

    # --- Signal wiring ---

    def _track_grant_models(self, config: EntityConfig) -> None:
        from .signals import connect_grant_signals

        for label in (config.role_model, config.permission_model):
            self._grant_configs.setdefault(label, config)
        if get_setting("cascade_settings.enable_cascade_signals", True):
            connect_grant_signals(config)

    def _connect_entity(self, label: str, kind: EntityKind) -> None:
        if not get_setting("cascade_settings.enable_cascade_signals", True):
            return
        from .signals import connect_context_signals, connect_subject_signals

        if kind is EntityKind.CONTEXT:
            connect_context_signals(apps.get_model(label))
        elif kind is EntityKind.SUBJECT:
            connect_subject_signals(apps.get_model(label))


# Global singleton instance
authorization_registry = AuthorizationRegistry()

__all__ = ["AuthorizationRegistry", "authorization_registry"]
