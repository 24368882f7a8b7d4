"""
Authentication API routes - register, login and user listing.

Login only verifies credentials and echoes the public user fields; no
session or token is issued. The dashboard keeps its own "logged in" flag.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from student_records.dependencies import get_db
from student_records.services import auth

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class RegisterRequest(BaseModel):
    """Schema for a registration request body."""
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Login email, unique across users")
    password: Optional[str] = Field(None, description="Password, stored as given")


class LoginRequest(BaseModel):
    """Schema for a login request body."""
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create a user account from name, email and password."""
    user_id = auth.register(db, payload.name, payload.email, payload.password)
    return {
        "status": "success",
        "message": "Registration successful",
        "userId": user_id
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Check an email/password pair."""
    user = auth.login(db, payload.email, payload.password)
    return {
        "status": "success",
        "message": "Login successful",
        "user": user.to_dict()
    }


@router.get("/users")
def list_users(db: Session = Depends(get_db)):
    return {"status": "success", "users": auth.list_users(db)}
