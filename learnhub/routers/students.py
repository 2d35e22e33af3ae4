from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from learnhub.config import settings
from learnhub.database import get_db
from learnhub.schemas.common import paginate
from learnhub.schemas.course import (
    EnrollOut,
    ProgressUpdateIn,
    ProgressUpdateOut,
    CourseDetailOut,
    StudentMaterialListOut,
    CatalogListOut,
    EnrolledCourseListOut,
    StudentDashboardOut,
    CertificateOut,
    CertificateListOut,
)
from learnhub.services import progress
from learnhub.utils.auth import require_student
from learnhub.utils.principal import Principal

router = APIRouter(prefix="/students", tags=["Students"])


def _certificate_out(cert):
    return {
        "id": cert.id,
        "course": {"id": cert.course.id, "title": cert.course.title},
        "certificate_url": cert.certificate_url,
        "created_at": cert.created_at,
        "updated_at": cert.updated_at,
    }


@router.get("/dashboard", response_model=StudentDashboardOut)
def student_dashboard(db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return progress.get_dashboard(db, student.id)


# catalog, flagged with enrollment
@router.get("/courses", response_model=CatalogListOut)
def list_courses(
    db: Session = Depends(get_db),
    student: Principal = Depends(require_student),
    search: Optional[str] = Query(None, description="title keyword"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    items, total = progress.list_catalog(db, student.id, page, limit, search)
    return {"courses": items, "pagination": paginate(page, limit, total)}


@router.get("/courses/enrolled", response_model=EnrolledCourseListOut)
def list_enrolled(db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return {"courses": progress.list_enrolled_courses(db, student.id)}


@router.get("/courses/{course_id}", response_model=CourseDetailOut)
def course_details(course_id: int, db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return progress.get_course_details(db, student.id, course_id)


@router.post("/courses/{course_id}/enroll", response_model=EnrollOut)
def enroll(course_id: int, db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    enrollment = progress.enroll(db, student.id, course_id)
    return {"message": "Successfully enrolled in course", "enrollment": enrollment}


@router.get("/courses/{course_id}/materials", response_model=StudentMaterialListOut)
def course_materials(course_id: int, db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return {"materials": progress.get_course_materials(db, student.id, course_id)}


@router.put("/courses/{course_id}/materials/{material_id}/progress", response_model=ProgressUpdateOut)
def update_progress(
    course_id: int,
    material_id: int,
    body: ProgressUpdateIn,
    db: Session = Depends(get_db),
    student: Principal = Depends(require_student),
):
    row = progress.update_material_progress(db, student.id, course_id, material_id, body.completed)
    return {
        "message": "Progress updated successfully",
        "progress": {
            "material_id": row.course_material_id,
            "completed": row.completed,
            "updated_at": row.updated_at,
        },
    }


@router.get("/certificates", response_model=CertificateListOut)
def list_certificates(db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return {"certificates": [_certificate_out(c) for c in progress.list_certificates(db, student.id)]}


@router.get("/certificates/{certificate_id}", response_model=CertificateOut)
def get_certificate(certificate_id: int, db: Session = Depends(get_db), student: Principal = Depends(require_student)):
    return _certificate_out(progress.get_certificate(db, student.id, certificate_id))
