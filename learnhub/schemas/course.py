from datetime import datetime
from typing import List

from pydantic import BaseModel

from learnhub.schemas.common import Pagination


class EnrollmentOut(BaseModel):
    course_id: int
    student_id: int
    enrolled_at: datetime


class EnrollOut(BaseModel):
    message: str
    enrollment: EnrollmentOut


class ProgressUpdateIn(BaseModel):
    completed: bool


class ProgressOut(BaseModel):
    material_id: int
    completed: bool
    updated_at: datetime


class ProgressUpdateOut(BaseModel):
    message: str
    progress: ProgressOut


class CourseDetailOut(BaseModel):
    id: int
    title: str
    description: str
    is_enrolled: bool
    is_completed: bool
    materials_count: int
    completed_materials: int


class StudentMaterialOut(BaseModel):
    id: int
    title: str
    is_completed: bool
    created_at: datetime
    updated_at: datetime


class StudentMaterialListOut(BaseModel):
    materials: List[StudentMaterialOut]


class CatalogCourseOut(BaseModel):
    id: int
    title: str
    description: str
    is_enrolled: bool
    created_at: datetime
    updated_at: datetime


class CatalogListOut(BaseModel):
    courses: List[CatalogCourseOut]
    pagination: Pagination


class EnrolledCourseOut(BaseModel):
    id: int
    title: str
    description: str
    enrolled_at: datetime
    is_completed: bool


class EnrolledCourseListOut(BaseModel):
    courses: List[EnrolledCourseOut]


class StudentDashboardOut(BaseModel):
    enrolled_courses: int
    completed_courses: int
    certificates_earned: int
    active_consultations: int
    forum_questions_asked: int


class CertificateCourse(BaseModel):
    id: int
    title: str


class CertificateOut(BaseModel):
    id: int
    course: CertificateCourse
    certificate_url: str
    created_at: datetime
    updated_at: datetime


class CertificateListOut(BaseModel):
    certificates: List[CertificateOut]
