# copilot_server/schemas/auth.py
from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import Field

from copilot_server.schemas.base import CamelModel
from copilot_server.schemas.user import UserRead


class LoginRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    """
    Self-registration. The account starts `pending` until an admin
    activates it. Minimum password length is enforced by the service
    (configurable).
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str
    name: str = Field(max_length=200)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class PasswordChange(CamelModel):
    model_config = ConfigDict(extra="forbid")

    current_password: str
    new_password: str


class LoginResponse(CamelModel):
    success: bool = True
    token: str
    user: UserRead


class RegisterResponse(CamelModel):
    success: bool = True
    message: str
    user_id: int


class MeResponse(CamelModel):
    success: bool = True
    user: UserRead


class VerifyResponse(CamelModel):
    success: bool = True
    valid: bool = True
    user: UserRead
