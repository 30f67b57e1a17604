import re

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=2, max_length=80)
    last_name: str = Field(min_length=2, max_length=80)
    email: EmailStr
    phone: str | None = Field(None, max_length=40)
    password: str = Field(min_length=8, max_length=100)

    @field_validator("first_name", "last_name", "phone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        for pattern, what in (
            (r"[a-z]", "a lowercase letter"),
            (r"[A-Z]", "an uppercase letter"),
            (r"[0-9]", "a digit"),
            (r"[^A-Za-z0-9]", "a symbol"),
        ):
            if not re.search(pattern, v):
                raise ValueError(f"Password must contain {what}")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    remember: bool = False


class LoginResponse(BaseModel):
    ok: bool = True
    token: str
    expires_in_seconds: int


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None
    role: str
    created_at: str


class MeResponse(BaseModel):
    ok: bool = True
    user: UserResponse
