from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from logistics_pro.core.constants import Role


class RegisterRequest(BaseModel):
    phone: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=100)
    role: Role = Role.CLIENT
    email: Optional[str] = None


class LoginRequest(BaseModel):
    phone: str
    password: str


class ResetPasswordRequest(BaseModel):
    phone: str
    new_password: str = Field(min_length=6)


class AdminCreateUserRequest(RegisterRequest):
    pass


class ApproveUserRequest(BaseModel):
    role: Optional[Role] = None
    approved: bool = True


class SetActiveRequest(BaseModel):
    is_active: bool


class UserRead(BaseModel):
    id: str
    phone: str
    name: str
    email: Optional[str] = None
    role: str
    is_active: bool
    is_approved: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
