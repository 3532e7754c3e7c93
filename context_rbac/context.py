"""
Context references for scoped roles and permissions.

A context is the anchor a role, permission or grant is scoped to. It is
stored as a ``(type_name, id)`` pair and takes one of three forms:

- ``(None, None)``: global
- ``("app.Model", None)``: every instance of a model
- ``("app.Model", "42")``: a single model instance
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from django.apps import apps
from django.db import models

ContextInput = Union[None, "ContextRef", type[models.Model], models.Model]


def model_label(model: Union[type[models.Model], models.Model]) -> str:
    """Return the ``app_label.ModelName`` label for a model class or instance."""
    return model._meta.label


@dataclass(frozen=True)
class ContextRef:
    """Normalized ``(type_name, id)`` pair identifying a context."""

    type_name: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        if self.id is not None and self.type_name is None:
            raise ValueError("A context id requires a context type")
        if self.id is not None and not isinstance(self.id, str):
            object.__setattr__(self, "id", str(self.id))

    @classmethod
    def parse(cls, value: ContextInput) -> "ContextRef":
        """
        Normalize any accepted context shape into a ContextRef.

        Accepts None, an existing ContextRef, a Django model class or a saved
        Django model instance.
        """
        if value is None:
            return cls()
        if isinstance(value, ContextRef):
            return value
        if isinstance(value, type) and issubclass(value, models.Model):
            return cls(type_name=model_label(value))
        if isinstance(value, models.Model):
            if value.pk is None:
                raise ValueError(
                    f"Cannot use an unsaved {model_label(value)} instance as a context"
                )
            return cls(type_name=model_label(value), id=str(value.pk))
        raise TypeError(
            f"Unsupported context value of type {type(value).__name__}"
        )

    @property
    def is_global(self) -> bool:
        return self.type_name is None

    @property
    def is_type(self) -> bool:
        return self.type_name is not None and self.id is None

    @property
    def is_instance(self) -> bool:
        return self.id is not None

    def covers(self, other: "ContextRef") -> bool:
        """
        Whether something scoped to this context may be used within ``other``.

        A global context covers everything, a type context covers the type and
        all its instances, an instance context covers only itself.
        """
        return (self.type_name is None or self.type_name == other.type_name) and (
            self.id is None or self.id == other.id
        )

    def chain(self) -> Iterator["ContextRef"]:
        """Yield this context followed by its broader ancestors, most specific first."""
        yield self
        if self.id is not None:
            yield ContextRef(type_name=self.type_name)
        if self.type_name is not None:
            yield ContextRef()

    def get_model(self) -> Optional[type[models.Model]]:
        if self.type_name is None:
            return None
        return apps.get_model(self.type_name)

    def to_context(self) -> Any:
        """
        Return the object this reference points at.

        None for a global context, the model class for a type context and the
        model instance for an instance context (None if it no longer exists).
        """
        model = self.get_model()
        if model is None or self.id is None:
            return model
        return model._default_manager.filter(pk=self.id).first()

    def as_filter(self, prefix: str = "context") -> dict[str, Optional[str]]:
        """Field lookups matching this exact context on a model."""
        return {f"{prefix}_type": self.type_name, f"{prefix}_id": self.id}

    def __str__(self) -> str:
        if self.type_name is None:
            return "global"
        if self.id is None:
            return self.type_name
        return f"{self.type_name}#{self.id}"


__all__ = ["ContextRef", "ContextInput", "model_label"]
