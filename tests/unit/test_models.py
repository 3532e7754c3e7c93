"""
Unit tests for the bundled role, permission and assignment models.
"""

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from context_rbac.context import ContextRef
from context_rbac.models import Permission, Role, RoleAssignment
from tests.models import Project

pytestmark = pytest.mark.unit


@pytest.mark.django_db
class TestSlugs:
    def test_slug_accepts_letters_digits_dashes_and_underscores(self):
        Role(name="Admin", slug="super_admin-2").full_clean()

    @pytest.mark.parametrize("slug", ["has space", "dot.ted", "", "é"])
    def test_slug_rejects_other_characters(self, slug):
        with pytest.raises(ValidationError):
            Permission(name="Bad", slug=slug).full_clean()

    def test_duplicate_slug_in_same_context(self, project):
        Role.objects.create(name="Admin", slug="admin")
        Role.objects.create(name="Admin", slug="admin", context=project)
        Role.objects.create(name="Admin", slug="admin", context=Project)

        for context in (None, project, Project):
            with pytest.raises(IntegrityError), transaction.atomic():
                Role.objects.create(name="Again", slug="admin", context=context)

    def test_same_slug_in_sibling_contexts(self, project, other_project):
        Permission.objects.create(name="Edit", slug="edit", context=project)
        Permission.objects.create(name="Edit", slug="edit", context=other_project)
        assert Permission.objects.filter(slug="edit").count() == 2


@pytest.mark.django_db
class TestContextField:
    def test_context_setter_accepts_model_class(self):
        role = Role(name="Manager", slug="manager", context=Project)
        assert role.context_type == "tests.Project"
        assert role.context_id is None
        assert role.context == ContextRef("tests.Project")

    def test_context_setter_accepts_instance(self, project):
        role = Role(name="Owner", slug="owner")
        role.context = project
        assert role.context_type == "tests.Project"
        assert role.context_id == str(project.pk)

    def test_global_context(self):
        assert Role(name="Root", slug="root").context.is_global

    def test_unsaved_context_is_rejected(self):
        with pytest.raises(ValueError):
            Role(name="Owner", slug="owner", context=Project(name="draft"))


@pytest.mark.django_db
def test_subject_grant_records_subject(user, make_role):
    role = make_role("admin")
    assignment = RoleAssignment.objects.create(role=role, subject=user)
    assert assignment.subject_type == "auth.User"
    assert assignment.subject_id == str(user.pk)
    assert assignment.subject == user
