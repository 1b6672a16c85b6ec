"""Auth request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str
    occupation: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str
    occupation: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    user: UserResponse
    expires_at: str
