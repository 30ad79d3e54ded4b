"""Who may act for which student profile."""

import pytest

from tests.factories.fakes import FakeIdentityResolver
from tutorlink.core.enums import RoleName
from tutorlink.core.exceptions import NotFoundException, UnauthorizedException, ValidationException
from tutorlink.services.identity_service import (
    ensure_request_owner,
    require_tutor_profile_id,
    resolve_student_scope,
    resolve_target_student_id,
)


@pytest.fixture
def identity() -> FakeIdentityResolver:
    resolver = FakeIdentityResolver()
    resolver.students = {"user-alice": "student-alice", "user-bob": "student-bob"}
    resolver.tutors = {"user-tom": "tutor-tom"}
    resolver.links = {("user-parent", "student-alice"), ("user-parent", "student-carol")}
    return resolver


class TestResolveTargetStudent:
    def test_student_acts_for_self_whatever_is_passed(self, identity):
        assert resolve_target_student_id(identity, "user-alice", "student", "student-bob") == (
            "student-alice"
        )

    def test_student_without_profile(self, identity):
        with pytest.raises(NotFoundException):
            resolve_target_student_id(identity, "user-nobody", RoleName.STUDENT)

    def test_parent_with_linked_child(self, identity):
        assert resolve_target_student_id(identity, "user-parent", "Parent", "student-alice") == (
            "student-alice"
        )

    def test_parent_with_unlinked_student(self, identity):
        with pytest.raises(UnauthorizedException):
            resolve_target_student_id(identity, "user-parent", "parent", "student-bob")

    def test_parent_must_name_child(self, identity):
        with pytest.raises(ValidationException):
            resolve_target_student_id(identity, "user-parent", "parent")

    @pytest.mark.parametrize("role", ["tutor", "admin", "", "janitor"])
    def test_other_roles_are_refused(self, identity, role):
        with pytest.raises(UnauthorizedException):
            resolve_target_student_id(identity, "user-tom", role, "student-alice")


class TestScopeAndOwnership:
    def test_parent_scope_without_child_is_every_child(self, identity):
        assert resolve_student_scope(identity, "user-parent", "parent") == [
            "student-alice",
            "student-carol",
        ]

    def test_student_scope_is_self(self, identity):
        assert resolve_student_scope(identity, "user-bob", "student") == ["student-bob"]

    def test_owner_checks(self, identity):
        ensure_request_owner(identity, "user-alice", "student", "student-alice")
        ensure_request_owner(identity, "user-parent", "parent", "student-alice")

        with pytest.raises(UnauthorizedException):
            ensure_request_owner(identity, "user-bob", "student", "student-alice")
        with pytest.raises(UnauthorizedException):
            ensure_request_owner(identity, "user-parent", "parent", "student-bob")
        with pytest.raises(UnauthorizedException):
            ensure_request_owner(identity, "user-tom", "tutor", "student-alice")

    def test_tutor_profile_required(self, identity):
        assert require_tutor_profile_id(identity, "user-tom") == "tutor-tom"
        with pytest.raises(UnauthorizedException):
            require_tutor_profile_id(identity, "user-alice")


def test_role_parse():
    assert RoleName.parse(" STUDENT ") == RoleName.STUDENT
    assert RoleName.parse(RoleName.PARENT) == RoleName.PARENT
    assert RoleName.parse("janitor") is None
    assert RoleName.parse(None) is None
