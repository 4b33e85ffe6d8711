"""Registration, login and the caller's own profile."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from todo_api.api.deps import CurrentUser, get_current_user
from todo_api.api.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from todo_api.core.security import create_access_token, hash_password, verify_password
from todo_api.db.postgres import PostgresDB, get_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: PostgresDB = Depends(get_db)) -> AuthResponse:
    if db.user_conflict_exists(body.username, body.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this username or email already exists",
        )

    user = db.create_user(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
    )
    logger.info("user_registered", user_id=user["id"], username=user["username"])
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user["id"]),
        user=UserResponse(**user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: PostgresDB = Depends(get_db)) -> AuthResponse:
    user = db.get_user_credentials(body.username)
    if user is None or not verify_password(body.password, user.pop("password")):
        logger.info("login_failed", login=body.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("user_logged_in", user_id=user["id"])
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user["id"]),
        user=UserResponse(**user),
    )


@router.get("/me", response_model=UserEnvelope)
@router.get("/profile", response_model=UserEnvelope)
async def profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> UserEnvelope:
    user = db.get_user(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserEnvelope(user=UserResponse(**user))
