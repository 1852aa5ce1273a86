"""FastAPI dependencies: get_current_employee, require_manager, require_admin.

Usage in any protected router:
    from src.gc_gateway.auth.dependencies import get_current_employee

    @router.get("/protected")
    async def protected(employee: EmployeeModel = Depends(get_current_employee)):
        ...
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.errors import EmployeeDisabledError, InvalidTokenError, PermissionDeniedError
from src.gc_gateway.auth.jwt_handler import decode_access_token
from src.gc_gateway.employee.db_models import EmployeeModel

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_employee(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeModel:
    """Validate the Bearer token and return the EmployeeModel.

    Raises HTTP 401 if the token is missing, invalid, expired, or names an
    unknown employee. Raises EmployeeDisabledError (403) for deactivated staff.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_access_token(credentials.credentials)
        employee_id = uuid.UUID(payload["sub"])
    except (InvalidTokenError, ValueError):
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(select(EmployeeModel).where(EmployeeModel.id == employee_id))
    employee = result.scalar_one_or_none()
    if employee is None:
        raise _CREDENTIALS_EXCEPTION

    if not employee.is_active:
        raise EmployeeDisabledError()

    return employee


async def require_manager(
    current_employee: EmployeeModel = Depends(get_current_employee),
) -> EmployeeModel:
    """Managers and admins may award coins and review wellness submissions."""
    if not (current_employee.is_manager or current_employee.is_admin):
        raise PermissionDeniedError("Manager")
    return current_employee


async def require_admin(
    current_employee: EmployeeModel = Depends(get_current_employee),
) -> EmployeeModel:
    if not current_employee.is_admin:
        raise PermissionDeniedError("Admin")
    return current_employee
