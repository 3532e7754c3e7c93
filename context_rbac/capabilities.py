"""
Context-bound authorization gates.

A gate binds a grant service to one context instance so callers can ask
``gate.allowed(user, "admin")`` the way they would ask the context itself.
Contexts registered without permissions get a plain ContextGate, which has
no ``allowed_to``.
"""

from typing import Any, Optional

from django.db import models

from .context import ContextRef


class ContextGate:
    """Role checks within a single context."""

    def __init__(self, service, context: models.Model):
        self.service = service
        self.context = context

    @property
    def context_ref(self) -> ContextRef:
        return ContextRef.parse(self.context)

    def allowed(self, subject: Optional[models.Model] = None, role: Any = None) -> bool:
        return self.service.allowed(subject, role, self.context)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.context_ref}>"


class PermissionContextGate(ContextGate):
    """ContextGate with permission checks."""

    def allowed_to(self, subject: Optional[models.Model] = None, permission: Any = None) -> bool:
        return self.service.allowed_to(subject, permission, self.context)


__all__ = ["ContextGate", "PermissionContextGate"]
