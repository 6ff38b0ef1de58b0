import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from smartclass.core.config import Settings
from smartclass.core.current_user import get_current_user
from smartclass.core.deps import get_app_settings, get_db
from smartclass.core.errors import UnauthorizedError, ValidationFailedError
from smartclass.core.security import create_access_token, hash_password, verify_password
from smartclass.models.user import User
from smartclass.schemas.auth import LoginRequest
from smartclass.schemas.token import Token
from smartclass.schemas.user import UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already registered"},
    },
)
def register(
    payload: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    existing_user = db.query(User).filter(User.email == payload.email).first()
    if existing_user:
        raise ValidationFailedError("User with this email already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        role=payload.role,
        hashed_password=hash_password(payload.password, rounds=settings.BCRYPT_ROUNDS),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered %s user %s", user.role, user.id)
    return user


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid email or password"},
    },
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise UnauthorizedError("Invalid email or password")

    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role},
        secret_key=settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        algorithm=settings.ALGORITHM,
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user,
    }


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
