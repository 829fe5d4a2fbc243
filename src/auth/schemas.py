# src/auth/schemas.py

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class AdminRole(str, Enum):
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


class AdminContext(BaseModel):
    """Identity of the staff member making the current request."""
    user_id: str
    clinic_id: Optional[str] = None
    role: AdminRole
