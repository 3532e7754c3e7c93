"""
Context-scoped role-based access control for Django.

Roles and permissions are global, scoped to a model type, or scoped to a
single model instance. Authorization checks resolve the most specific
grant, walking from the instance up to its type and then to global.

Quick Start:
    >>> from context_rbac import authorization_registry as registry
    >>> service = registry.grant_service()
    >>> service.assign_role(user, "editor", project)
    >>> service.has_role(user, "editor", project)
    True

Exports:
    - ContextRef: Normalized (type, id) context reference
    - Resolver: Context-chain role/permission resolution
    - GrantService / PermissionGrantService: Assignment and checks
    - CascadeManager: Cleanup on role, permission and context deletion
    - authorization_registry: Global registry of authorization entities
"""

__version__ = "0.1.0"

from .capabilities import ContextGate, PermissionContextGate
from .cascade import CascadeManager
from .config import EntityConfig, EntityKind
from .context import ContextRef
from .exceptions import ArgumentError, CapabilityError, RBACError, ResolutionError
from .grants import GrantService, PermissionGrantService
from .registry import authorization_registry
from .resolver import Resolver, normalize_slug, verify_context

__all__ = [
    "ContextRef",
    "EntityConfig",
    "EntityKind",
    "Resolver",
    "GrantService",
    "PermissionGrantService",
    "CascadeManager",
    "ContextGate",
    "PermissionContextGate",
    "RBACError",
    "ResolutionError",
    "ArgumentError",
    "CapabilityError",
    "authorization_registry",
    "normalize_slug",
    "verify_context",
]

