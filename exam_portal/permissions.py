"""Roles and the capabilities each role is granted."""

from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Capability(str, Enum):
    TAKE_TEST = "take_test"
    VIEW_ANY_ATTEMPT = "view_any_attempt"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.STUDENT: frozenset({Capability.TAKE_TEST}),
    Role.TEACHER: frozenset({Capability.TAKE_TEST}),
    Role.ADMIN: frozenset({Capability.TAKE_TEST, Capability.VIEW_ANY_ATTEMPT}),
}


def parse_role(value: str) -> Role:
    """Map a stored role string onto the closed role set.

    Unknown values fall back to ``Role.STUDENT``, the least privileged role.
    """
    try:
        return Role(value)
    except ValueError:
        return Role.STUDENT


def has_capability(role: str, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[parse_role(role)]
