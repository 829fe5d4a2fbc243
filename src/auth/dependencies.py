# src/auth/dependencies.py

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import DecodeError
import jwt

from src.common.config import settings
from src.common.utils.global_messages import GlobalMessages

from .schemas import AdminContext, AdminRole

bearer_scheme = HTTPBearer()

async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> AdminContext:
    """
    Dependency to build the request's admin context from the JWT provided in the Authorization header.
    """
    token = credentials.credentials

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=GlobalMessages.INVALID_CREDENTIALS,
        headers={"WWW-Authenticate": "Bearer"}
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except DecodeError:
        raise credentials_exception
    except jwt.ExpiredSignatureError:
        raise credentials_exception
    except jwt.InvalidTokenError:
        raise credentials_exception

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role not in {r.value for r in AdminRole}:
        raise credentials_exception

    return AdminContext(
        user_id=str(user_id),
        clinic_id=str(payload["clinic_id"]) if payload.get("clinic_id") else None,
        role=AdminRole(role),
    )


async def require_clinic_access(
    clinic_id: str,
    admin: AdminContext = Depends(get_current_admin)
) -> AdminContext:
    """
    Dependency ensuring the admin may act on the clinic named in the path.
    Super admins may access every clinic.
    """
    if admin.role == AdminRole.SUPERADMIN:
        return admin
    if admin.clinic_id is None or admin.clinic_id != clinic_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=GlobalMessages.CLINIC_ACCESS_DENIED
        )
    return admin
