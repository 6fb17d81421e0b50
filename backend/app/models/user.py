from pydantic import BaseModel, EmailStr
from typing import Optional


class SessionUser(BaseModel):
    """User as reported by the identity provider."""
    uid: str
    email: Optional[str] = None
    displayName: Optional[str] = None


class SessionState(BaseModel):
    user: Optional[SessionUser] = None
    loading: bool = True


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str = ""
    user: SessionUser


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleSignInRequest(BaseModel):
    id_token: str


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: SessionUser
