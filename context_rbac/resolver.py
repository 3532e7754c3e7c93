"""
Context-chain resolution of role and permission identifiers.

An identifier is either an already-loaded record, which is used as-is, or a
slug. Slugs resolve to the record with the closest contextual match, walking
from the exact context up to its type and then to global.
"""

import logging
import re
from enum import Enum
from typing import Any, Optional

from .config import EntityConfig
from .config_proxy import get_setting
from .context import ContextInput, ContextRef
from .store import DjangoStore, Store

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY_1 = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_2 = re.compile(r"([a-z\d])([A-Z])")


def normalize_slug(identifier: Any) -> str:
    """
    Normalize a slug-like identifier.

    ``"Admin"``, ``"admin"`` and ``"SuperAdmin"`` become ``"admin"``,
    ``"admin"`` and ``"super_admin"``. Enum members use their value.

    Unlike an ActiveSupport-style ``underscore``, dashes are kept:
    ``"admin-team"`` matches a record slugged ``"admin-team"``, never one
    slugged ``"admin_team"``.
    """
    if isinstance(identifier, Enum):
        identifier = identifier.value
    slug = str(identifier).strip()
    slug = _CAMEL_BOUNDARY_1.sub(r"\1_\2", slug)
    slug = _CAMEL_BOUNDARY_2.sub(r"\1_\2", slug)
    return slug.lower()


def verify_context(target: Any, context: ContextInput) -> bool:
    """
    Whether ``target`` (a role or permission) may be used within ``context``.

    The target's own context must match the requested one or sit higher up
    the chain:

    - ``(Project, 1)`` cannot be used at ``(Project, None)`` or ``(Team, 1)``
    - ``(Project, None)`` can be used at ``(Project, 1)``, ``(Project, 2)``...
    - global targets can be used anywhere
    """
    if target is None:
        return False
    return target.context.covers(ContextRef.parse(context))


class Resolver:
    """Resolves role and permission identifiers against a Store."""

    def __init__(self, config: EntityConfig, store: Optional[Store] = None):
        self.config = config
        self.store = store or DjangoStore(config)

    def resolve_role(self, role: Any, context: ContextInput = None):
        """
        Return the role with the closest contextual match, or None.

        A role instance is returned unchanged, which lets callers pin a role
        that is not the best match for the context, e.g. assign the
        type-level ``admin`` role on a project that also has its own
        ``admin`` role.
        """
        if isinstance(role, self.config.get_role_model()):
            return role
        return self._resolve(self.store.find_role, "role", role, context)

    def resolve_permission(self, permission: Any, context: ContextInput = None):
        """Return the permission with the closest contextual match, or None."""
        if isinstance(permission, self.config.get_permission_model()):
            return permission
        return self._resolve(self.store.find_permission, "permission", permission, context)

    def _resolve(self, finder, kind: str, identifier: Any, context: ContextInput):
        if identifier is None:
            return None
        slug = normalize_slug(identifier)
        ref = ContextRef.parse(context)
        level = logging.INFO if get_setting("logging_settings.log_resolution", False) else logging.DEBUG
        for candidate in ref.chain():
            found = finder(slug, candidate.type_name, candidate.id)
            if found is not None:
                logger.log(level, "Resolved %s '%s' for %s at %s", kind, slug, ref, candidate)
                return found
        logger.log(level, "No %s '%s' found for %s", kind, slug, ref)
        return None

    verify_context = staticmethod(verify_context)


__all__ = ["Resolver", "normalize_slug", "verify_context"]
