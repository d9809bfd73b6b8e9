from schoolsync.models.user import Role
from schoolsync.utils.permissions import ROLE_PERMISSIONS, Permission, has_permission, permissions_for


def test_every_role_has_an_entry() -> None:
    assert set(ROLE_PERMISSIONS) == set(Role)


def test_super_admin_holds_no_tenant_permissions() -> None:
    assert permissions_for(Role.SUPER_ADMIN) == frozenset()


def test_principal_holds_everything() -> None:
    assert permissions_for("PRINCIPAL") == frozenset(Permission)


def test_vice_principal_cannot_manage_fees() -> None:
    assert not has_permission(Role.VICE_PRINCIPAL, Permission.MANAGE_FEES)
    assert has_permission(Role.VICE_PRINCIPAL, Permission.COLLECT_FEES)


def test_teacher_marks_attendance_but_not_fees() -> None:
    assert has_permission(Role.TEACHER, Permission.MARK_ATTENDANCE)
    assert not has_permission(Role.TEACHER, Permission.VIEW_FEES)
    assert not has_permission(Role.TEACHER, Permission.REVIEW_LEAVE)


def test_students_and_parents_are_self_service() -> None:
    for role in (Role.STUDENT, Role.PARENT):
        assert has_permission(role, Permission.APPLY_LEAVE)
        assert not has_permission(role, Permission.VIEW_STUDENTS)


def test_unknown_role_gets_nothing() -> None:
    assert permissions_for("JANITOR") == frozenset()
    assert permissions_for(None) == frozenset()
