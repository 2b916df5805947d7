from exam_portal.permissions import Capability, Role, has_capability, parse_role


def test_every_role_may_take_tests():
    for role in Role:
        assert has_capability(role.value, Capability.TAKE_TEST)


def test_only_admin_views_any_attempt():
    assert has_capability("admin", Capability.VIEW_ANY_ATTEMPT)
    assert not has_capability("teacher", Capability.VIEW_ANY_ATTEMPT)
    assert not has_capability("student", Capability.VIEW_ANY_ATTEMPT)


def test_unknown_role_gets_least_privilege():
    assert parse_role("superuser") is Role.STUDENT
    assert not has_capability("superuser", Capability.VIEW_ANY_ATTEMPT)
