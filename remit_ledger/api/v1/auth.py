"""/auth - registration, login and the caller's own profile"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    UserResponse,
    MessageResponse,
)
from remit_ledger.api.dependencies import get_current_user
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import UserRepository
from remit_ledger.infrastructure.security import hash_password, verify_password, issue_token

router = APIRouter()


@router.post("/auth/register", response_model=MessageResponse, status_code=201)
def register(request_body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a staff account (public)"""
    users = UserRepository(db)
    email = request_body.email.strip().lower()
    if users.get_by_email(email):
        raise HTTPException(status_code=400, detail="Email already used")

    users.create(
        name=request_body.name,
        email=email,
        password_hash=hash_password(request_body.password),
        role=request_body.role,
    )
    db.commit()
    logging.info("User registered", extra={"email": email, "role": request_body.role})
    return MessageResponse(message="User registered")


@router.post("/auth/login", response_model=LoginResponse)
def login(request_body: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for a bearer token (public)"""
    user = UserRepository(db).get_by_email(request_body.email.strip().lower())
    if user is None or not verify_password(request_body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(
        token=issue_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.get("/auth/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/auth/profile", response_model=UserResponse)
def update_profile(
    request_body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change name, email or password of the current user"""
    changes = request_body.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes:
        email = changes["email"].strip().lower()
        existing = UserRepository(db).get_by_email(email)
        if existing is not None and existing.id != user.id:
            raise HTTPException(status_code=400, detail="Email already used")
        user.email = email
    if "name" in changes:
        user.name = changes["name"]
    if "password" in changes:
        user.password_hash = hash_password(changes["password"])

    db.commit()
    db.refresh(user)
    return user


@router.delete("/auth/profile", response_model=MessageResponse)
def delete_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    UserRepository(db).delete(user)
    db.commit()
    return MessageResponse(message="Profile deleted successfully")
