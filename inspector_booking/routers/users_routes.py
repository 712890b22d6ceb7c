# inspector_booking/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from inspector_booking.db import get_session
from inspector_booking.models import User
from inspector_booking.schemas import UserCreate, UserPublic, UserRole
from inspector_booking.auth import get_current_user, get_optional_user, hash_password

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
    current_user: dict | None = Depends(get_optional_user),
):
    # 1) Anyone may sign up as an inspector; admin/manager accounts come from an admin
    if user.role != UserRole.inspector and (current_user is None or current_user["role"] != UserRole.admin.value):
        raise HTTPException(status_code=403, detail="Only an admin can create admin or manager accounts")

    # 2) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 3) Create user in DB
    db_user = User(
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id

    return db_user
