"""Tests for domain type enums: parametrized."""

import pytest

from phasectl.domain.types import (
    ADMIN_ROLES,
    ReasonCode,
    ReviewStatus,
    TeamRole,
    TimelineBucket,
    WorkItemType,
)

ENUM_CASES = [
    (
        WorkItemType,
        {"feature", "enhancement", "bug", "concept"},
    ),
    (
        TeamRole,
        {"owner", "admin", "member"},
    ),
    (
        ReviewStatus,
        {"none", "pending", "approved", "rejected"},
    ),
    (
        TimelineBucket,
        {"MVP", "SHORT", "LONG"},
    ),
]


@pytest.mark.parametrize(
    "enum_cls,expected_values",
    ENUM_CASES,
    ids=[cls.__name__ for cls, _ in ENUM_CASES],
)
def test_enum_members_and_values(enum_cls: type, expected_values: set[str]) -> None:
    """Each StrEnum has the expected members with matching string values."""
    actual_values = {e.value for e in enum_cls}
    assert actual_values == expected_values
    # StrEnum members compare equal to their string value
    for member in enum_cls:
        assert member == member.value
        assert isinstance(member, str)


def test_admin_roles() -> None:
    assert ADMIN_ROLES == {"owner", "admin"}
    assert "member" not in ADMIN_ROLES


def test_reason_codes_are_their_own_names() -> None:
    for code in ReasonCode:
        assert code.value == code.name
    assert {"NOT_A_MEMBER", "OUT_OF_ORDER", "REVIEW_REQUIRED", "CONFLICT"} <= set(ReasonCode)
