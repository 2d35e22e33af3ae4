import pytest

from learnhub.exceptions import ForbiddenException
from learnhub.models.consultation import ConsultationQuestion
from learnhub.services import ownership
from learnhub.utils.principal import Principal, Role


STUDENT = Principal(id=1, role=Role.student)
OTHER_STUDENT = Principal(id=2, role=Role.student)
MENTOR = Principal(id=3, role=Role.mentor)
ADMIN = Principal(id=4, role=Role.admin)


@pytest.mark.parametrize(
    "principal,owner_id,allowed",
    [
        (STUDENT, 1, True),
        (OTHER_STUDENT, 1, False),
        (MENTOR, 3, True),
        (MENTOR, 5, False),
        (ADMIN, 999, True),
    ],
)
def test_can_mutate_is_owner_or_admin(principal, owner_id, allowed):
    assert ownership.can_mutate(principal, owner_id) is allowed


def test_only_students_create_questions():
    assert ownership.can_create_question(STUDENT)
    assert not ownership.can_create_question(MENTOR)
    assert not ownership.can_create_question(ADMIN)


def test_only_mentors_and_admins_create_answers():
    assert not ownership.can_create_answer(STUDENT)
    assert ownership.can_create_answer(MENTOR)
    assert ownership.can_create_answer(ADMIN)


def test_ensure_helpers_raise_forbidden():
    with pytest.raises(ForbiddenException) as exc:
        ownership.ensure_can_mutate(OTHER_STUDENT, 1, "nope")
    assert exc.value.status_code == 403
    assert exc.value.detail == "nope"

    with pytest.raises(ForbiddenException):
        ownership.ensure_can_create_answer(STUDENT, "nope")

    with pytest.raises(ForbiddenException):
        ownership.ensure_can_view(OTHER_STUDENT, 1, "nope")

    ownership.ensure_can_view(MENTOR, 1, "never raised")


def test_visibility_filter(db, make_user):
    s1 = make_user("student")
    s2 = make_user("student")
    mentor = make_user("mentor")

    q1 = ConsultationQuestion(student_id=s1.id, title="t", message="m")
    q2 = ConsultationQuestion(student_id=s2.id, title="t", message="m")
    db.add_all([q1, q2])
    db.commit()

    p1 = Principal(id=s1.id, role=Role.student)
    assert ownership.visibility_filter(db, p1, ConsultationQuestion) == [q1.id]

    pm = Principal(id=mentor.id, role=Role.mentor)
    assert ownership.visibility_filter(db, pm, ConsultationQuestion) is None

    lonely = make_user("student")
    pl = Principal(id=lonely.id, role=Role.student)
    assert ownership.visibility_filter(db, pl, ConsultationQuestion) == []
