from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from learnhub.database import Base


PROGRESS_UNIQUE = "uq_progress_student_material"


class CourseProgress(Base):
    __tablename__ = "course_progress"
    # one row per (student, material); the enrollment race relies on it
    __table_args__ = (
        UniqueConstraint("student_id", "course_material_id", name=PROGRESS_UNIQUE),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # RESTRICT: a material with progress must not disappear underneath it
    course_material_id = Column(
        Integer, ForeignKey("course_materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
