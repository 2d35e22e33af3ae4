from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnhub.database import get_db
from learnhub.schemas.common import MessageOut
from learnhub.schemas.material import (
    MaterialCreate,
    MaterialUpdate,
    MaterialListOut,
    MaterialMutationOut,
    MentorCourseListOut,
    MentorCourseDetailOut,
    CourseStudentListOut,
    MentorDashboardOut,
    StudentProgressOut,
)
from learnhub.services import materials
from learnhub.utils.auth import require_mentor
from learnhub.utils.principal import Principal


router = APIRouter(prefix="/mentors", tags=["Mentors"])


@router.get("/dashboard", response_model=MentorDashboardOut)
def mentor_dashboard(db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return materials.get_mentor_dashboard(db, mentor.id)


@router.get("/courses", response_model=MentorCourseListOut)
def assigned_courses(db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return {"courses": materials.list_assigned_courses(db, mentor.id)}


@router.get("/courses/{course_id}", response_model=MentorCourseDetailOut)
def course_details(course_id: int, db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return materials.get_course_details(db, mentor, course_id)


@router.get("/courses/{course_id}/students", response_model=CourseStudentListOut)
def course_students(course_id: int, db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return {"students": materials.list_course_students(db, mentor, course_id)}


@router.get("/courses/{course_id}/materials", response_model=MaterialListOut)
def list_materials(course_id: int, db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return {"materials": materials.list_materials(db, mentor, course_id)}


@router.post("/courses/{course_id}/materials", response_model=MaterialMutationOut)
def create_material(
    course_id: int,
    body: MaterialCreate,
    db: Session = Depends(get_db),
    mentor: Principal = Depends(require_mentor),
):
    m = materials.create_material(db, mentor, course_id, body)
    return {"message": "Course material created successfully", "material": m}


@router.put("/courses/{course_id}/materials/{material_id}", response_model=MaterialMutationOut)
def update_material(
    course_id: int,
    material_id: int,
    body: MaterialUpdate,
    db: Session = Depends(get_db),
    mentor: Principal = Depends(require_mentor),
):
    m = materials.update_material(db, mentor, course_id, material_id, body)
    return {"message": "Course material updated successfully", "material": m}


@router.delete("/courses/{course_id}/materials/{material_id}", response_model=MessageOut)
def delete_material(
    course_id: int,
    material_id: int,
    db: Session = Depends(get_db),
    mentor: Principal = Depends(require_mentor),
):
    materials.delete_material(db, mentor, course_id, material_id)
    return {"message": "Course material deleted successfully"}


@router.get("/students/{student_id}/progress", response_model=StudentProgressOut)
def student_progress(student_id: int, db: Session = Depends(get_db), mentor: Principal = Depends(require_mentor)):
    return materials.get_student_progress(db, mentor.id, student_id)
