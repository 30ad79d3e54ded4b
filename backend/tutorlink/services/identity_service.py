# backend/tutorlink/services/identity_service.py
"""
Identity resolution between user accounts and profiles.

Also hosts the two access rules every workflow shares:
- which student profile an actor may act for, and
- whether an actor owns a given class request.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import NotFoundException, UnauthorizedException, ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .gateways import IdentityResolver

logger = logging.getLogger(__name__)


class IdentityService(BaseService):
    """Database-backed IdentityResolver."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.student_profile_repository = RepositoryFactory.create_student_profile_repository(db)
        self.tutor_profile_repository = RepositoryFactory.create_tutor_profile_repository(db)
        self.link_repository = RepositoryFactory.create_parent_student_link_repository(db)

    def student_profile_id_for_user(self, user_id: str) -> Optional[str]:
        profile = self.student_profile_repository.get_by_user_id(user_id)
        return profile.id if profile else None

    def tutor_profile_id_for_user(self, user_id: str) -> Optional[str]:
        profile = self.tutor_profile_repository.get_by_user_id(user_id)
        return profile.id if profile else None

    def parent_child_link_exists(self, parent_user_id: str, student_profile_id: str) -> bool:
        return self.link_repository.verified_link_exists(parent_user_id, student_profile_id)

    def student_user_id(self, student_profile_id: str) -> Optional[str]:
        profile = self.student_profile_repository.get_by_id(student_profile_id)
        return profile.user_id if profile else None

    def tutor_user_id(self, tutor_profile_id: str) -> Optional[str]:
        profile = self.tutor_profile_repository.get_by_id(tutor_profile_id)
        return profile.user_id if profile else None

    def children_of(self, parent_user_id: str) -> List[str]:
        return self.link_repository.verified_child_ids(parent_user_id)


def resolve_target_student_id(
    identity: IdentityResolver,
    actor_user_id: str,
    role: Union[str, RoleName],
    student_id: Optional[str] = None,
) -> str:
    """
    Student profile the actor is acting for.

    Students always act for their own profile. Parents must name a child's
    student profile and hold a verified link to it. Any other role is refused.
    """
    resolved_role = RoleName.parse(role)

    if resolved_role == RoleName.STUDENT:
        own_id = identity.student_profile_id_for_user(actor_user_id)
        if not own_id:
            raise NotFoundException("Student profile not found for this account")
        return own_id

    if resolved_role == RoleName.PARENT:
        if not student_id:
            raise ValidationException(
                "A parent must specify which child they are acting for",
                code="STUDENT_ID_REQUIRED",
            )
        if not identity.parent_child_link_exists(actor_user_id, student_id):
            raise UnauthorizedException(
                "You are not linked to this student",
                details={"student_id": student_id},
            )
        return student_id

    raise UnauthorizedException(
        "Only students or parents can act for a student",
        details={"role": str(role)},
    )


def resolve_student_scope(
    identity: IdentityResolver,
    actor_user_id: str,
    role: Union[str, RoleName],
    student_id: Optional[str] = None,
) -> List[str]:
    """
    Student profiles visible to the actor for read operations.

    A parent without an explicit child sees every linked child.
    """
    if RoleName.parse(role) == RoleName.PARENT and not student_id:
        return identity.children_of(actor_user_id)
    return [resolve_target_student_id(identity, actor_user_id, role, student_id)]


def ensure_request_owner(
    identity: IdentityResolver,
    actor_user_id: str,
    role: Union[str, RoleName],
    request_student_id: str,
) -> None:
    """Raise UnauthorizedException unless the actor owns the request's student profile."""
    resolved_role = RoleName.parse(role)

    if resolved_role == RoleName.STUDENT:
        if identity.student_profile_id_for_user(actor_user_id) != request_student_id:
            raise UnauthorizedException("You do not own this class request")
        return

    if resolved_role == RoleName.PARENT:
        if not identity.parent_child_link_exists(actor_user_id, request_student_id):
            raise UnauthorizedException("You are not linked to the student of this request")
        return

    raise UnauthorizedException(
        "Only the requesting student or their parent can manage this request",
        details={"role": str(role)},
    )


def require_tutor_profile_id(identity: IdentityResolver, tutor_user_id: str) -> str:
    """Tutor profile of the account, or UnauthorizedException when it has none."""
    tutor_id = identity.tutor_profile_id_for_user(tutor_user_id)
    if not tutor_id:
        raise UnauthorizedException("This account has no tutor profile")
    return tutor_id
