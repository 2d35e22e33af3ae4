from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError

from learnhub.config import settings
from learnhub.exceptions import ForbiddenException, UnauthorizedException
from learnhub.utils.principal import Principal, Role

# token issuance lives in the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def create_access_token(user_id: int, role: str, expires_minutes=60):
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedException("Invalid authentication token")

    sub = payload.get("sub")
    role = payload.get("role")
    if sub is None or role is None:
        raise UnauthorizedException("Invalid token")

    try:
        return Principal(id=int(sub), role=role)
    except (ValueError, ValidationError):
        raise UnauthorizedException("Invalid token")


def require_roles(*roles: Role):
    allowed = set(roles)

    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise ForbiddenException(f"{' or '.join(r.value for r in roles).capitalize()} only")
        return principal

    return checker


require_student = require_roles(Role.student)
require_mentor = require_roles(Role.mentor)
require_staff = require_roles(Role.mentor, Role.admin)
