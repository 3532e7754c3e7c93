"""
Authorization decorators for GraphQL resolvers.

This module provides decorators enforcing context-scoped role and
permission requirements on resolver functions.
"""

from functools import wraps
from typing import Any, Callable, Optional

from graphql import GraphQLError


def _get_registry():
    """Lazy import to avoid circular imports."""
    from .registry import authorization_registry

    return authorization_registry


def _extract_info(args: tuple) -> Any:
    for arg in args:
        if hasattr(arg, "context"):
            return arg
    return None


def _authenticated_user(args: tuple):
    info = _extract_info(args)
    if not info or not hasattr(info.context, "user"):
        raise GraphQLError("User context is not available")

    user = info.context.user
    if not user or not getattr(user, "is_authenticated", False):
        raise GraphQLError("Authentication required")
    return user


def _resolve_context(context: Any, args: tuple, kwargs: dict) -> Any:
    """A callable context is evaluated with the resolver arguments."""
    if callable(context) and not isinstance(context, type):
        return context(*args, **kwargs)
    return context


def _service_for(user):
    registry = _get_registry()
    if registry.is_registered(user):
        return registry.grant_service(user)
    return registry.grant_service()


def require_role(role: Any, context: Optional[Any] = None):
    """
    Decorator to require a role, optionally within a context.

    Args:
        role: Role slug or Role instance.
        context: Context model class, instance, or a callable receiving the
            resolver arguments and returning one.

    Raises:
        GraphQLError: If user is not authenticated or lacks the role.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            user = _authenticated_user(args)
            target_context = _resolve_context(context, args, kwargs)

            if not _service_for(user).allowed(user, role, target_context):
                raise GraphQLError(f"Role required: {role}")

            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_permission(permission: Any, context: Optional[Any] = None):
    """
    Decorator to require a permission, optionally within a context.

    Args:
        permission: Permission slug or Permission instance.
        context: Context model class, instance, or a callable receiving the
            resolver arguments and returning one.

    Raises:
        GraphQLError: If user is not authenticated, lacks the permission, or
            the user's entity is configured without permissions.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            user = _authenticated_user(args)
            target_context = _resolve_context(context, args, kwargs)

            service = _service_for(user)
            if not hasattr(service, "allowed_to"):
                raise GraphQLError(
                    f"Permission checks are not enabled for {user._meta.label}"
                )
            if not service.allowed_to(user, permission, target_context):
                raise GraphQLError(f"Permission required: {permission}")

            return func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["require_role", "require_permission"]
