"""
Custom exceptions for context-aware authorization.

This module defines specific exception types so callers can tell a missing
role or permission apart from a malformed authorization call.
"""

from typing import Any, Optional


class RBACError(Exception):
    """Base exception for authorization errors."""

    pass


class ResolutionError(RBACError, LookupError):
    """Raised when an identifier does not resolve to a stored role or permission."""

    def __init__(
        self,
        message: str,
        identifier: Any = None,
        context: Any = None,
        kind: Optional[str] = None,
    ):
        self.identifier = identifier
        self.context = context
        self.kind = kind
        super().__init__(message)


class ArgumentError(RBACError, ValueError):
    """Raised when an authorization check is called without subject or target."""

    pass


class CapabilityError(RBACError, AttributeError):
    """Raised when an entity is asked for a capability it was not configured with."""

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        capability: Optional[str] = None,
    ):
        self.entity = entity
        self.capability = capability
        super().__init__(message)


__all__ = ["RBACError", "ResolutionError", "ArgumentError", "CapabilityError"]
