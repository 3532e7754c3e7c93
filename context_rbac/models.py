"""
Persistence models for context-scoped roles, permissions and grants.

Roles and permissions carry a context (``context_type``/``context_id``)
that scopes where they apply. Assignment rows record the context a grant
was made in, independently of the granted record's own context.

Uniqueness is enforced by the database, including the NULL combinations
that a plain multi-column unique index lets through, so find-or-create
stays atomic under concurrent writers.
"""

from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q

from .context import ContextInput, ContextRef, model_label

slug_validator = RegexValidator(
    regex=r"^[A-Za-z0-9_-]+$",
    message="Slugs may only contain letters, digits, underscores and dashes.",
    code="invalid_slug",
)


def _scoped_unique_constraints(fields: list[str], name: str) -> list[models.UniqueConstraint]:
    """Unique constraints over ``fields`` + context that treat NULL contexts as equal."""
    return [
        models.UniqueConstraint(
            fields=[*fields, "context_type", "context_id"],
            name=f"%(app_label)s_%(class)s_{name}_inst",
        ),
        models.UniqueConstraint(
            fields=[*fields, "context_type"],
            condition=Q(context_type__isnull=False, context_id__isnull=True),
            name=f"%(app_label)s_%(class)s_{name}_type",
        ),
        models.UniqueConstraint(
            fields=fields,
            condition=Q(context_type__isnull=True),
            name=f"%(app_label)s_%(class)s_{name}_glob",
        ),
    ]


class ContextScopedModel(models.Model):
    """Abstract base holding a context reference."""

    context_type = models.CharField(max_length=150, null=True, blank=True, db_index=True)
    context_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    class Meta:
        abstract = True

    @property
    def context(self) -> ContextRef:
        return ContextRef(type_name=self.context_type, id=self.context_id)

    @context.setter
    def context(self, value: ContextInput) -> None:
        ref = ContextRef.parse(value)
        self.context_type = ref.type_name
        self.context_id = ref.id


class AbstractRole(ContextScopedModel):
    name = models.CharField(max_length=150)
    slug = models.CharField(max_length=100, validators=[slug_validator])
    level = models.IntegerField(default=0, help_text="Higher levels are more privileged")

    class Meta:
        abstract = True
        ordering = ["-level", "slug"]
        constraints = _scoped_unique_constraints(["slug"], "slug")

    def __str__(self):
        return f"{self.slug} ({self.context})"


class AbstractPermission(ContextScopedModel):
    name = models.CharField(max_length=150)
    slug = models.CharField(max_length=100, validators=[slug_validator])

    class Meta:
        abstract = True
        ordering = ["slug"]
        constraints = _scoped_unique_constraints(["slug"], "slug")

    def __str__(self):
        return f"{self.slug} ({self.context})"


class SubjectGrantModel(ContextScopedModel):
    """Abstract base for grants held by a subject (any model instance)."""

    subject_type = models.CharField(max_length=150)
    subject_id = models.CharField(max_length=64, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    @property
    def subject(self):
        return ContextRef(type_name=self.subject_type, id=self.subject_id).to_context()

    @subject.setter
    def subject(self, value: models.Model) -> None:
        self.subject_type = model_label(value)
        self.subject_id = str(value.pk)


class Role(AbstractRole):
    pass


class Permission(AbstractPermission):
    pass


class RoleAssignment(SubjectGrantModel):
    role = models.ForeignKey(
        Role,
        on_delete=models.DO_NOTHING,
        related_name="assignments",
    )

    class Meta:
        constraints = _scoped_unique_constraints(
            ["subject_type", "subject_id", "role"], "grant"
        )

    def __str__(self):
        return f"{self.subject_type}#{self.subject_id} -> {self.role_id} @ {self.context}"


class PermissionAssignment(SubjectGrantModel):
    permission = models.ForeignKey(
        Permission,
        on_delete=models.DO_NOTHING,
        related_name="assignments",
    )

    class Meta:
        constraints = _scoped_unique_constraints(
            ["subject_type", "subject_id", "permission"], "grant"
        )

    def __str__(self):
        return (
            f"{self.subject_type}#{self.subject_id} -> "
            f"{self.permission_id} @ {self.context}"
        )


class PermissionRoleAssignment(ContextScopedModel):
    role = models.ForeignKey(
        Role,
        on_delete=models.DO_NOTHING,
        related_name="permission_grants",
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.DO_NOTHING,
        related_name="role_grants",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = _scoped_unique_constraints(["role", "permission"], "grant")

    def __str__(self):
        return f"{self.role_id} -> {self.permission_id} @ {self.context}"
