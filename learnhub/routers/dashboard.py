from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from learnhub.database import get_db
from learnhub.models.course import Course
from learnhub.models.user import User
from learnhub.services import progress, materials
from learnhub.utils.auth import get_current_principal
from learnhub.utils.principal import Principal, Role


router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _admin_dashboard(db: Session) -> dict:
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {
        "total_users": sum(by_role.values()),
        "total_students": by_role.get(Role.student.value, 0),
        "total_mentors": by_role.get(Role.mentor.value, 0),
        "total_courses": db.query(func.count(Course.id)).scalar(),
    }


@router.get("")
def get_dashboard(db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
    if user.role == Role.student:
        data = progress.get_dashboard(db, user.id)
    elif user.role == Role.mentor:
        data = materials.get_mentor_dashboard(db, user.id)
    else:
        data = _admin_dashboard(db)
    return {"role": user.role.value, "data": data}
