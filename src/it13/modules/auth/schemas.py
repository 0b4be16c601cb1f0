"""Authentication schemas."""

import enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class UserType(str, enum.Enum):
    ADMIN = "admin"
    TECHNICIAN = "technician"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserSummary(CamelModel):
    id: str
    email: str
    name: str
    surname: str
    role: str


class LoginData(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserSummary
    must_change_password: bool = False
    is_temporary_password: bool = False


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Connexion réussie"
    data: LoginData


class ChangePasswordRequest(CamelModel):
    email: EmailStr
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ChangeTemporaryPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    # Plain str: a malformed address gets the same answer as an unknown one
    email: str = Field(..., min_length=1, max_length=255)
    user_type: UserType = UserType.TECHNICIAN


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class PasswordStrengthRequest(CamelModel):
    password: str


class PasswordStrengthResponse(CamelModel):
    is_valid: bool
    checks: dict[str, bool]
    messages: list[str]


class MessageResponse(CamelModel):
    success: bool = True
    message: str
