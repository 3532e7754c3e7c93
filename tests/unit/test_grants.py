"""
Unit tests for role and permission grants.
"""

import pytest

from context_rbac.context import ContextRef
from context_rbac.exceptions import ArgumentError, ResolutionError
from context_rbac.models import PermissionAssignment, PermissionRoleAssignment, RoleAssignment
from tests.models import Project

pytestmark = pytest.mark.unit


class TestRoles:
    def test_assign_and_check_global_role(self, service, user, make_role):
        admin = make_role("admin", level=100)

        assert service.has_role(user, "admin", None) is False
        service.assign_role(user, "admin", None)
        assert service.has_role(user, "admin", None) is True
        assert service.allowed(user, admin) is True

    def test_assign_is_idempotent(self, service, user, project, make_role):
        make_role("admin")

        first = service.assign_role(user, "admin", project)
        second = service.assign_role(user, "admin", project)

        assert first.pk == second.pk
        assert RoleAssignment.objects.count() == 1
        assert service.has_role(user, "admin", project) is True

    def test_assign_unknown_role_raises(self, service, user):
        with pytest.raises(ResolutionError) as excinfo:
            service.assign_role(user, "ghost")
        assert excinfo.value.kind == "role"
        assert excinfo.value.identifier == "ghost"

    def test_has_role_for_unknown_role_is_false(self, service, user):
        assert service.has_role(user, "ghost", None) is False

    def test_grant_is_bound_to_its_context(self, service, user, project, other_project, make_role):
        make_role("admin")
        service.assign_role(user, "admin", project)

        assert service.has_role(user, "admin", project) is True
        assert service.has_role(user, "admin", other_project) is False
        assert service.has_role(user, "admin", None) is False

    def test_grant_of_other_subject_is_ignored(self, service, user, other_user, make_role):
        make_role("admin")
        service.assign_role(other_user, "admin")

        assert service.has_role(user, "admin") is False

    def test_pinned_role_is_assigned_in_given_context(self, service, user, project, make_role):
        type_admin = make_role("admin", context=Project)
        make_role("admin", context=project)

        assignment = service.assign_role(user, type_admin, project)

        assert assignment.role == type_admin
        assert assignment.context == ContextRef.parse(project)
        assert service.has_role(user, type_admin, project) is True
        # The slug resolves to the closer, instance-level role
        assert service.has_role(user, "admin", project) is False

    def test_role_context_is_reverified(self, service, user, project, other_project, make_role):
        role = make_role("admin", context=project)
        service.assign_role(user, role, project)
        assert service.has_role(user, role, project) is True

        role.context = other_project
        role.save()

        assert RoleAssignment.objects.filter(role=role).exists()
        assert service.has_role(user, role, project) is False

    def test_revoke_role(self, service, user, project, make_role):
        make_role("admin")
        service.assign_role(user, "admin", project)

        assert service.revoke_role(user, "admin", project) is True
        assert service.has_role(user, "admin", project) is False
        assert service.revoke_role(user, "admin", project) is False
        assert service.revoke_role(user, "ghost", project) is False

    def test_role_levels(self, service, user, project, make_role):
        make_role("viewer", level=10)
        make_role("editor", level=50)
        make_role("admin", level=100)
        service.assign_role(user, "editor", project)
        service.assign_role(user, "viewer", project)

        assert service.has_role_or_higher(user, "viewer", project) is True
        assert service.has_role_or_higher(user, "editor", project) is True
        assert service.has_role_or_higher(user, "admin", project) is False
        assert service.has_role_or_higher(user, "ghost", project) is False
        assert service.highest_role(user, project).slug == "editor"
        assert [role.slug for role in service.roles_for(user, project)] == ["editor", "viewer"]
        assert service.highest_role(user, None) is None

    def test_roles_for_skips_roles_not_usable_in_context(
        self, service, user, project, other_project, make_role
    ):
        scoped = make_role("owner", level=10, context=other_project)
        service.assign_role(user, scoped, project)

        assert service.roles_for(user, project) == []


class TestAllowed:
    def test_requires_subject_and_role(self, service, user, make_role):
        make_role("admin")
        with pytest.raises(ArgumentError):
            service.allowed(None, "admin")
        with pytest.raises(ArgumentError):
            service.allowed(user, None)
        with pytest.raises(ArgumentError):
            service.allowed()

    def test_wraps_has_role(self, service, user, project, make_role):
        role = make_role("admin", level=100)

        assert service.allowed(user, role, project) is False
        assert service.allowed(user, role, project) == service.has_role(user, role, project)
        service.assign_role(user, role, project)
        assert service.allowed(user, role, project) is True
        assert service.allowed(user, role, project) == service.has_role(user, role, project)

    def test_requires_subject_and_permission(self, service, user, make_permission):
        make_permission("edit")
        with pytest.raises(ArgumentError):
            service.allowed_to(None, "edit")
        with pytest.raises(ArgumentError):
            service.allowed_to(user)


class TestPermissions:
    def test_direct_permission(self, service, user, project, make_permission):
        permission = make_permission("edit")

        assert service.allowed_to(user, permission, project) is False
        service.assign_permission(user, permission, project)
        assert service.allowed_to(user, permission, project) is True
        assert service.has_permission(user, "edit", project) is True
        assert service.has_permission(user, "edit", None) is False

    def test_assign_permission_is_idempotent(self, service, user, make_permission):
        make_permission("edit")
        service.assign_permission(user, "edit")
        service.assign_permission(user, "edit")

        assert PermissionAssignment.objects.count() == 1

    def test_assign_unknown_permission_raises(self, service, user):
        with pytest.raises(ResolutionError) as excinfo:
            service.assign_permission(user, "ghost")
        assert excinfo.value.kind == "permission"

    def test_revoke_permission(self, service, user, make_permission):
        make_permission("edit")
        service.assign_permission(user, "edit")

        assert service.revoke_permission(user, "edit") is True
        assert service.has_permission(user, "edit") is False
        assert service.revoke_permission(user, "edit") is False

    def test_permission_through_role(self, service, user, project, other_project, make_role, make_permission):
        make_role("editor", level=50)
        make_permission("edit")
        service.assign_permission_to_role("editor", "edit", Project)
        service.assign_role(user, "editor", project)

        assert service.has_permission(user, "edit", project) is True
        assert service.has_permission(user, "edit", other_project) is False
        assert service.has_permission(user, "edit", None) is False

    def test_role_grant_below_requested_context_does_not_apply(
        self, service, user, project, make_role, make_permission
    ):
        make_role("editor")
        make_permission("edit")
        service.assign_permission_to_role("editor", "edit", project)
        service.assign_role(user, "editor", Project)

        assert service.has_permission(user, "edit", Project) is False

    def test_revoking_role_removes_derived_permission(
        self, service, user, project, make_role, make_permission
    ):
        make_role("editor")
        make_permission("edit")
        service.assign_permission_to_role("editor", "edit")
        service.assign_role(user, "editor", project)
        assert service.has_permission(user, "edit", project) is True

        service.revoke_role(user, "editor", project)
        assert service.has_permission(user, "edit", project) is False

    def test_scoped_permission_only_usable_in_its_context(
        self, service, user, project, other_project, make_permission
    ):
        scoped = make_permission("edit", context=project)
        service.assign_permission(user, scoped, other_project)

        assert service.has_permission(user, scoped, other_project) is False

    def test_permissions_for(self, service, user, project, make_role, make_permission):
        make_role("editor")
        make_permission("edit")
        make_permission("view")
        make_permission("delete")
        service.assign_permission(user, "view", project)
        service.assign_permission_to_role("editor", "edit")
        service.assign_permission_to_role("editor", "view")
        service.assign_role(user, "editor", project)

        assert [p.slug for p in service.permissions_for(user, project)] == ["edit", "view"]

    def test_role_permission_api(self, service, project, make_role, make_permission):
        make_role("editor")
        make_permission("edit")

        assert service.role_has_permission("editor", "edit", project) is False
        service.assign_permission_to_role("editor", "edit", Project)
        service.assign_permission_to_role("editor", "edit", Project)
        assert PermissionRoleAssignment.objects.count() == 1
        assert service.role_has_permission("editor", "edit", project) is True
        assert service.role_has_permission("editor", "edit", None) is False

        assert service.revoke_permission_from_role("editor", "edit", Project) is True
        assert service.role_has_permission("editor", "edit", project) is False
        assert service.revoke_permission_from_role("editor", "edit", Project) is False
