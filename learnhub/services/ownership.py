"""
Ownership policy shared by the consultation and forum Q&A families.

Every role decision for questions and answers goes through here so the
four resource types cannot drift apart.
"""
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from learnhub.exceptions import ForbiddenException
from learnhub.utils.principal import Principal, Role


def can_mutate(principal: Principal, owner_id: int) -> bool:
    return principal.id == owner_id or principal.role == Role.admin


def can_create_question(principal: Principal) -> bool:
    return principal.role == Role.student


def can_create_answer(principal: Principal) -> bool:
    return principal.role in (Role.mentor, Role.admin)


def is_unrestricted(principal: Principal) -> bool:
    return principal.role in (Role.mentor, Role.admin)


def visibility_filter(db: Session, principal: Principal, question_model) -> Optional[Sequence[int]]:
    """
    Question ids the principal may see within one family.

    ``None`` means unrestricted (mentor/admin). A student gets the ids of
    their own questions, possibly empty; answers are visible through the
    question they hang off.
    """
    if is_unrestricted(principal):
        return None

    rows = db.query(question_model.id).filter(question_model.student_id == principal.id).all()
    return [r.id for r in rows]


def can_view(principal: Principal, question_owner_id: int) -> bool:
    return is_unrestricted(principal) or principal.id == question_owner_id


def ensure_can_view(principal: Principal, question_owner_id: int, detail: str):
    if not can_view(principal, question_owner_id):
        raise ForbiddenException(detail)


def ensure_can_mutate(principal: Principal, owner_id: int, detail: str):
    if not can_mutate(principal, owner_id):
        raise ForbiddenException(detail)


def ensure_can_create_question(principal: Principal, detail: str):
    if not can_create_question(principal):
        raise ForbiddenException(detail)


def ensure_can_create_answer(principal: Principal, detail: str):
    if not can_create_answer(principal):
        raise ForbiddenException(detail)
