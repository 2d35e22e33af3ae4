"""
Mentor-facing course material management.

Every mutation first checks that the mentor is assigned to the course.
Deletion is additionally refused once any student has a progress row on
the material, so historical progress cannot be orphaned.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, distinct, case
from sqlalchemy.orm import Session

from learnhub.exceptions import NotFoundException, ForbiddenException
from learnhub.models.course import Course, CourseMaterial, CourseMentor
from learnhub.models.course_progress import CourseProgress
from learnhub.models.consultation import ConsultationQuestion
from learnhub.models.forum import ForumAnswer
from learnhub.models.user import User
from learnhub.services.progress import materials_count
from learnhub.schemas.material import MaterialCreate, MaterialUpdate
from learnhub.utils.principal import Principal, Role

logger = logging.getLogger("learnhub.materials")


def ensure_assigned(db: Session, principal: Principal, course_id: int) -> CourseMentor:
    """The mentor's assignment to the course; a missing course looks the same as an unassigned one."""
    assignment = (
        db.query(CourseMentor)
        .filter(CourseMentor.course_id == course_id, CourseMentor.mentor_id == principal.id)
        .first()
    )
    if not assignment:
        raise NotFoundException("Course not found or not assigned")
    return assignment


def _get_material(db: Session, course_id: int, material_id: int) -> CourseMaterial:
    material = (
        db.query(CourseMaterial)
        .filter(CourseMaterial.id == material_id, CourseMaterial.course_id == course_id)
        .first()
    )
    if not material:
        raise NotFoundException("Material not found")
    return material


def has_progress(db: Session, material_id: int) -> bool:
    return (
        db.query(CourseProgress.id).filter(CourseProgress.course_material_id == material_id).first()
        is not None
    )


def list_materials(db: Session, principal: Principal, course_id: int):
    ensure_assigned(db, principal, course_id)
    return (
        db.query(CourseMaterial)
        .filter(CourseMaterial.course_id == course_id)
        .order_by(CourseMaterial.created_at.asc(), CourseMaterial.id.asc())
        .all()
    )


def create_material(db: Session, principal: Principal, course_id: int, data: MaterialCreate) -> CourseMaterial:
    ensure_assigned(db, principal, course_id)

    material = CourseMaterial(course_id=course_id, title=data.title, content=data.content)
    db.add(material)
    db.commit()
    db.refresh(material)

    logger.info("Material %s created in course %s by user %s", material.id, course_id, principal.id)
    return material


def update_material(
    db: Session, principal: Principal, course_id: int, material_id: int, data: MaterialUpdate
) -> CourseMaterial:
    ensure_assigned(db, principal, course_id)
    material = _get_material(db, course_id, material_id)

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(material, field, value)
    material.updated_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(material)

    logger.info("Material %s updated by user %s", material_id, principal.id)
    return material


def delete_material(db: Session, principal: Principal, course_id: int, material_id: int):
    ensure_assigned(db, principal, course_id)
    material = _get_material(db, course_id, material_id)

    if has_progress(db, material_id):
        logger.warning("Refused to delete material %s: student progress exists", material_id)
        raise ForbiddenException("Cannot delete material with student progress")

    db.delete(material)
    db.commit()
    logger.info("Material %s deleted from course %s by user %s", material_id, course_id, principal.id)


def _student_count(db: Session, course_ids) -> int:
    if not course_ids:
        return 0
    return (
        db.query(func.count(distinct(CourseProgress.student_id)))
        .select_from(CourseProgress)
        .join(CourseMaterial, CourseMaterial.id == CourseProgress.course_material_id)
        .filter(CourseMaterial.course_id.in_(course_ids))
        .scalar()
    )


def list_assigned_courses(db: Session, mentor_id: int) -> list[dict]:
    rows = (
        db.query(Course, CourseMentor.created_at)
        .join(CourseMentor, CourseMentor.course_id == Course.id)
        .filter(CourseMentor.mentor_id == mentor_id)
        .order_by(Course.id.asc())
        .all()
    )
    return [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "students_enrolled": _student_count(db, [c.id]),
            "assigned_at": assigned_at,
        }
        for c, assigned_at in rows
    ]


def get_course_details(db: Session, principal: Principal, course_id: int) -> dict:
    assignment = ensure_assigned(db, principal, course_id)
    course = db.query(Course).filter(Course.id == course_id).one()
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "students_enrolled": _student_count(db, [course_id]),
        "materials_count": materials_count(db, course_id),
        "assigned_at": assignment.created_at,
    }


def list_course_students(db: Session, principal: Principal, course_id: int) -> list[dict]:
    ensure_assigned(db, principal, course_id)

    # enrollment writes one timestamp for every row, so the earliest is the enrollment
    rows = (
        db.query(User, func.min(CourseProgress.created_at).label("enrolled_at"))
        .join(CourseProgress, CourseProgress.student_id == User.id)
        .join(CourseMaterial, CourseMaterial.id == CourseProgress.course_material_id)
        .filter(CourseMaterial.course_id == course_id)
        .group_by(User.id)
        .order_by(User.id.asc())
        .all()
    )
    return [
        {"id": u.id, "name": u.name, "email": u.email, "enrolled_at": enrolled_at}
        for u, enrolled_at in rows
    ]


def get_mentor_dashboard(db: Session, mentor_id: int) -> dict:
    course_ids = [
        r.course_id
        for r in db.query(CourseMentor.course_id).filter(CourseMentor.mentor_id == mentor_id).all()
    ]

    active_consultations = (
        db.query(func.count(ConsultationQuestion.id)).filter(~ConsultationQuestion.answers.any()).scalar()
    )
    forum_answers = db.query(func.count(ForumAnswer.id)).filter(ForumAnswer.user_id == mentor_id).scalar()

    return {
        "assigned_courses": len(course_ids),
        "total_students": _student_count(db, course_ids),
        "active_consultations": active_consultations,
        "forum_answers_given": forum_answers,
    }


def get_student_progress(db: Session, mentor_id: int, student_id: int) -> dict:
    student = db.query(User).filter(User.id == student_id, User.role == Role.student.value).first()
    if not student:
        raise NotFoundException("Student not found")

    courses = (
        db.query(Course)
        .join(CourseMentor, CourseMentor.course_id == Course.id)
        .filter(CourseMentor.mentor_id == mentor_id)
        .order_by(Course.id.asc())
        .all()
    )

    report = []
    for course in courses:
        stats = (
            db.query(
                func.count(CourseProgress.id),
                func.sum(case((CourseProgress.completed.is_(True), 1), else_=0)),
                func.max(CourseProgress.updated_at),
            )
            .select_from(CourseProgress)
            .join(CourseMaterial, CourseMaterial.id == CourseProgress.course_material_id)
            .filter(CourseProgress.student_id == student_id, CourseMaterial.course_id == course.id)
            .one()
        )
        rows, done, last_activity = stats
        if not rows:
            continue

        report.append({
            "course_id": course.id,
            "course_title": course.title,
            "materials_completed": int(done or 0),
            "total_materials": materials_count(db, course.id),
            "last_activity": last_activity,
        })

    if not report:
        raise NotFoundException("Student not found or not in mentor's courses")

    return {
        "student": {"id": student.id, "name": student.name, "email": student.email},
        "courses_progress": report,
    }
