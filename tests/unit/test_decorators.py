"""
Unit tests for resolver authorization decorators.
"""

from types import SimpleNamespace
from unittest import mock

import pytest
from django.contrib.auth.models import AnonymousUser
from graphql import GraphQLError

from context_rbac.config import EntityConfig, EntityKind
from context_rbac.decorators import require_permission, require_role
from context_rbac.grants import GrantService
from tests.models import Project

pytestmark = pytest.mark.unit


class _InfoStub:
    def __init__(self, user):
        self.context = SimpleNamespace(user=user)


def test_require_role_blocks_anonymous_user(db):
    @require_role("admin")
    def _secured(_, info):
        return "ok"

    with pytest.raises(GraphQLError):
        _secured(None, _InfoStub(AnonymousUser()))


def test_require_role_blocks_missing_role(user, make_role):
    make_role("admin")

    @require_role("admin")
    def _secured(_, info):
        return "ok"

    with pytest.raises(GraphQLError):
        _secured(None, _InfoStub(user))


def test_require_role_allows_global_role(service, user, make_role):
    make_role("admin")
    service.assign_role(user, "admin")

    @require_role("admin")
    def _secured(_, info):
        return "ok"

    assert _secured(None, _InfoStub(user)) == "ok"


def test_require_role_with_context_callable(service, user, project, other_project, make_role):
    make_role("manager", context=Project)
    service.assign_role(user, "manager", project)

    @require_role("manager", context=lambda root, info, **kwargs: Project.objects.get(pk=kwargs["id"]))
    def _secured(root, info, **kwargs):
        return kwargs["id"]

    assert _secured(None, _InfoStub(user), id=project.pk) == project.pk
    with pytest.raises(GraphQLError):
        _secured(None, _InfoStub(user), id=other_project.pk)


def test_require_permission(service, user, project, make_permission):
    make_permission("edit")

    @require_permission("edit", context=project)
    def _secured(_, info):
        return "ok"

    with pytest.raises(GraphQLError):
        _secured(None, _InfoStub(user))
    service.assign_permission(user, "edit", project)
    assert _secured(None, _InfoStub(user)) == "ok"


def test_missing_info_is_rejected():
    @require_role("admin")
    def _secured(root):
        return "ok"

    with pytest.raises(GraphQLError):
        _secured(None)


def test_require_permission_without_permission_support(user, make_permission):
    make_permission("edit")
    config = EntityConfig.from_settings(EntityKind.SUBJECT, "auth.User", with_permissions=False)

    @require_permission("edit")
    def _secured(_, info):
        return "ok"

    with mock.patch(
        "context_rbac.decorators._service_for", return_value=GrantService(config)
    ):
        with pytest.raises(GraphQLError) as excinfo:
            _secured(None, _InfoStub(user))
    assert "auth.User" in str(excinfo.value)
