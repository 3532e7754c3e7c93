import pytest
from django.contrib.auth.models import User

from context_rbac.models import Permission, Role
from tests.models import Project, Weapon


@pytest.fixture
def user(db):
    return User.objects.create_user(username="tester", password="pass12345")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="other", password="pass12345")


@pytest.fixture
def project(db):
    return Project.objects.create(name="Apollo")


@pytest.fixture
def other_project(db):
    return Project.objects.create(name="Gemini")


@pytest.fixture
def weapon(db):
    return Weapon.objects.create(name="Sword")


@pytest.fixture
def make_role(db):
    def _make(slug, level=0, context=None, name=None):
        role = Role(name=name or slug.title(), slug=slug, level=level)
        role.context = context
        role.save()
        return role

    return _make


@pytest.fixture
def make_permission(db):
    def _make(slug, context=None, name=None):
        permission = Permission(name=name or slug.title(), slug=slug)
        permission.context = context
        permission.save()
        return permission

    return _make


@pytest.fixture
def service(db):
    from context_rbac import authorization_registry

    return authorization_registry.grant_service(User)
