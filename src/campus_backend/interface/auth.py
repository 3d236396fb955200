from typing import Dict, Optional
from pydantic import BaseModel, EmailStr, Field
from campus_backend.permissions.matrix import Role

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class SessionPrincipal(BaseModel):
    user_id: str
    role: Role
    related_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

class LoginResponse(BaseModel):
    token: str
    principal: SessionPrincipal

class SessionInfo(BaseModel):
    principal: SessionPrincipal
    permissions: Dict[str, bool]
