from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    student = "student"
    mentor = "mentor"
    admin = "admin"


class Principal(BaseModel):
    """The authenticated caller. Trusted as-is once decoded from the token."""

    model_config = ConfigDict(frozen=True)

    id: int
    role: Role
