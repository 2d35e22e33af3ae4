from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


class MaterialCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)


class MaterialUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)


class MaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    created_at: datetime
    updated_at: datetime


class MaterialListOut(BaseModel):
    materials: List[MaterialOut]


class MaterialMutationOut(BaseModel):
    message: str
    material: MaterialOut


class MentorCourseOut(BaseModel):
    id: int
    title: str
    description: str
    students_enrolled: int
    assigned_at: datetime


class MentorCourseListOut(BaseModel):
    courses: List[MentorCourseOut]


class MentorCourseDetailOut(MentorCourseOut):
    materials_count: int


class CourseStudentOut(BaseModel):
    id: int
    name: str
    email: str
    enrolled_at: datetime


class CourseStudentListOut(BaseModel):
    students: List[CourseStudentOut]


class MentorDashboardOut(BaseModel):
    assigned_courses: int
    total_students: int
    active_consultations: int
    forum_answers_given: int


class StudentRef(BaseModel):
    id: int
    name: str
    email: str


class CourseProgressReport(BaseModel):
    course_id: int
    course_title: str
    materials_completed: int
    total_materials: int
    last_activity: Optional[datetime] = None


class StudentProgressOut(BaseModel):
    student: StudentRef
    courses_progress: List[CourseProgressReport]
