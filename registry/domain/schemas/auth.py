"""Pydantic schemas for admin authentication."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class AdminRead(BaseModel):
    email: str
    role: str = "admin"


class TokenResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    user: AdminRead
