"""
Enrollment and progress tracking.

A student is enrolled in a course as soon as at least one progress row
points at one of its materials. Enrollment inserts one row per material in
a single transaction; the unique (student, material) constraint is what
actually prevents double enrollment, the pre-check only saves a round trip.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from learnhub.exceptions import (
    NotFoundException,
    ConflictException,
    BadRequestException,
    ALREADY_ENROLLED,
    NO_MATERIALS,
)
from learnhub.models.course import Course, CourseMaterial
from learnhub.models.course_progress import CourseProgress, PROGRESS_UNIQUE
from learnhub.models.certificate import Certificate
from learnhub.models.consultation import ConsultationQuestion
from learnhub.models.forum import ForumQuestion

logger = logging.getLogger("learnhub.progress")


def _now():
    return datetime.now(timezone.utc)


def _course_progress(db: Session, student_id: int, course_id: int):
    return (
        db.query(CourseProgress)
        .join(CourseMaterial, CourseMaterial.id == CourseProgress.course_material_id)
        .filter(CourseProgress.student_id == student_id, CourseMaterial.course_id == course_id)
    )


def _duplicate_progress(exc: IntegrityError) -> bool:
    """True only for a violation of the (student, material) unique constraint."""
    orig = exc.orig
    constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == PROGRESS_UNIQUE
    message = str(orig)
    # sqlite names the columns instead of the constraint
    return PROGRESS_UNIQUE in message or (
        "UNIQUE constraint failed" in message and "course_progress.course_material_id" in message
    )


def is_enrolled(db: Session, student_id: int, course_id: int) -> bool:
    return _course_progress(db, student_id, course_id).first() is not None


def materials_count(db: Session, course_id: int) -> int:
    return db.query(func.count(CourseMaterial.id)).filter(CourseMaterial.course_id == course_id).scalar()


def completed_count(db: Session, student_id: int, course_id: int) -> int:
    return (
        _course_progress(db, student_id, course_id)
        .filter(CourseProgress.completed.is_(True))
        .count()
    )


def is_completed(total_materials: int, completed_materials: int) -> bool:
    return total_materials > 0 and completed_materials == total_materials


def course_completed(db: Session, student_id: int, course_id: int) -> bool:
    return is_completed(materials_count(db, course_id), completed_count(db, student_id, course_id))


def enrolled_course_ids(db: Session, student_id: int) -> list[int]:
    rows = (
        db.query(distinct(CourseMaterial.course_id))
        .join(CourseProgress, CourseProgress.course_material_id == CourseMaterial.id)
        .filter(CourseProgress.student_id == student_id)
        .all()
    )
    return sorted(r[0] for r in rows)


def enroll(db: Session, student_id: int, course_id: int) -> dict:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundException("Course not found")

    if is_enrolled(db, student_id, course_id):
        raise ConflictException("Already enrolled in this course", reason=ALREADY_ENROLLED)

    material_ids = [
        r.id for r in db.query(CourseMaterial.id).filter(CourseMaterial.course_id == course_id).all()
    ]
    if not material_ids:
        raise BadRequestException("Course has no materials available", reason=NO_MATERIALS)

    enrolled_at = _now()
    db.add_all(
        CourseProgress(
            student_id=student_id,
            course_material_id=mid,
            completed=False,
            created_at=enrolled_at,
            updated_at=enrolled_at,
        )
        for mid in material_ids
    )
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not _duplicate_progress(e):
            logger.error("Enrollment insert failed student=%s course=%s: %s", student_id, course_id, e.orig)
            raise
        # lost the race against a concurrent enroll for the same pair
        logger.warning("Duplicate enrollment rejected by constraint student=%s course=%s", student_id, course_id)
        raise ConflictException("Already enrolled in this course", reason=ALREADY_ENROLLED)

    logger.info("Student %s enrolled in course %s (%d materials)", student_id, course_id, len(material_ids))
    return {"course_id": course_id, "student_id": student_id, "enrolled_at": enrolled_at}


def update_material_progress(db: Session, student_id: int, course_id: int, material_id: int, completed: bool):
    material = (
        db.query(CourseMaterial)
        .filter(CourseMaterial.id == material_id, CourseMaterial.course_id == course_id)
        .first()
    )
    if not material:
        raise NotFoundException("Material not found in this course")

    progress = (
        db.query(CourseProgress)
        .filter(CourseProgress.student_id == student_id, CourseProgress.course_material_id == material_id)
        .first()
    )
    if not progress:
        raise NotFoundException("Progress record not found")

    progress.completed = completed
    progress.updated_at = _now()
    db.commit()
    db.refresh(progress)

    logger.info("Progress student=%s material=%s completed=%s", student_id, material_id, completed)
    return progress


def get_course_details(db: Session, student_id: int, course_id: int) -> dict:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundException("Course not found")

    total = materials_count(db, course_id)
    done = completed_count(db, student_id, course_id)

    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "is_enrolled": is_enrolled(db, student_id, course_id),
        "is_completed": is_completed(total, done),
        "materials_count": total,
        "completed_materials": done,
    }


def get_course_materials(db: Session, student_id: int, course_id: int) -> list[dict]:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course or not is_enrolled(db, student_id, course_id):
        raise NotFoundException("Course not found or not enrolled")

    rows = (
        db.query(CourseMaterial, CourseProgress.completed)
        .outerjoin(
            CourseProgress,
            (CourseProgress.course_material_id == CourseMaterial.id)
            & (CourseProgress.student_id == student_id),
        )
        .filter(CourseMaterial.course_id == course_id)
        .order_by(CourseMaterial.created_at.asc(), CourseMaterial.id.asc())
        .all()
    )

    # materials added after enrollment have no progress row and read as not completed
    return [
        {
            "id": m.id,
            "title": m.title,
            "is_completed": bool(done),
            "created_at": m.created_at,
            "updated_at": m.updated_at,
        }
        for m, done in rows
    ]


def list_catalog(db: Session, student_id: int, page: int, limit: int, search: str | None = None):
    q = db.query(Course)
    if search and search.strip():
        q = q.filter(Course.title.ilike(f"%{search.strip()}%"))

    total = q.count()
    courses = (
        q.order_by(Course.created_at.desc(), Course.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    enrolled = set(enrolled_course_ids(db, student_id))
    items = [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "is_enrolled": c.id in enrolled,
            "created_at": c.created_at,
            "updated_at": c.updated_at,
        }
        for c in courses
    ]
    return items, total


def list_enrolled_courses(db: Session, student_id: int) -> list[dict]:
    rows = (
        db.query(Course, func.min(CourseProgress.created_at).label("enrolled_at"))
        .join(CourseMaterial, CourseMaterial.course_id == Course.id)
        .join(CourseProgress, CourseProgress.course_material_id == CourseMaterial.id)
        .filter(CourseProgress.student_id == student_id)
        .group_by(Course.id)
        .order_by(Course.id.asc())
        .all()
    )

    return [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "enrolled_at": enrolled_at,
            "is_completed": course_completed(db, student_id, c.id),
        }
        for c, enrolled_at in rows
    ]


def get_dashboard(db: Session, student_id: int) -> dict:
    course_ids = enrolled_course_ids(db, student_id)
    completed_courses = sum(1 for cid in course_ids if course_completed(db, student_id, cid))

    certificates = db.query(func.count(Certificate.id)).filter(Certificate.student_id == student_id).scalar()

    active_consultations = (
        db.query(func.count(ConsultationQuestion.id))
        .filter(
            ConsultationQuestion.student_id == student_id,
            ~ConsultationQuestion.answers.any(),
        )
        .scalar()
    )

    forum_questions = db.query(func.count(ForumQuestion.id)).filter(ForumQuestion.student_id == student_id).scalar()

    return {
        "enrolled_courses": len(course_ids),
        "completed_courses": completed_courses,
        "certificates_earned": certificates,
        "active_consultations": active_consultations,
        "forum_questions_asked": forum_questions,
    }


def list_certificates(db: Session, student_id: int):
    return (
        db.query(Certificate)
        .filter(Certificate.student_id == student_id)
        .order_by(Certificate.created_at.desc(), Certificate.id.desc())
        .all()
    )


def get_certificate(db: Session, student_id: int, certificate_id: int):
    cert = (
        db.query(Certificate)
        .filter(Certificate.id == certificate_id, Certificate.student_id == student_id)
        .first()
    )
    if not cert:
        raise NotFoundException("Certificate not found")
    return cert
