"""Authentication endpoints: register, login, me, logout."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..deps import get_current_user, get_settings
from ..models import AuthCredential, User
from ..security import create_access_token, get_password_hash, verify_password
from ..services.workspace_service import WorkspaceService


logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Bad Request"},
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        500: {"model": schemas.ErrorResponse, "description": "Internal Server Error"},
    }
)


@router.post(
    "/register",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new user account together with a personal workspace
    ("<First>'s Workspace") owned by the user. Does not log the user in.
    """,
)
def register_user(payload: schemas.UserCreate, db: Session = Depends(get_db)):
    """Register a new user with a default workspace and local credentials.

    - If email already exists, respond with 400.
    - Create `User` and its `AuthCredential` (bcrypt hash).
    - Create the default workspace with the user as owner and member.
    """
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = User(email=payload.email, name=payload.name)
    db.add(user)
    db.flush()  # assign user.id

    db.add(AuthCredential(user_id=user.id, password_hash=get_password_hash(payload.password)))

    workspace = WorkspaceService(db).create_default_workspace_for_user(user)
    db.refresh(user)
    logger.info("[AUTH] Registered %s with workspace %s", user.email, workspace.id)
    return user


@router.post(
    "/login",
    response_model=schemas.LoginResponse,
    summary="Authenticate user",
    description="""
    Authenticate a user with email and password.

    On success sets an HTTP-only cookie `access_token` = "Bearer <jwt>" and
    also returns the token for clients that send it as an Authorization
    header.
    """,
)
def login_user(
    payload: schemas.UserLogin,
    response: Response,
    request: Request,
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    cred = db.query(AuthCredential).filter(AuthCredential.user_id == user.id).first()
    if not cred or not verify_password(payload.password, cred.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(subject=user.email)
    settings = get_settings()

    cookie_kwargs = {
        "key": "access_token",
        "value": f"Bearer {token}",
        "httponly": True,
        "samesite": "none",
        "secure": True,
        "max_age": 7 * 24 * 3600,
        "path": "/",
    }
    # Browsers drop SameSite=None cookies over plain HTTP
    if request.url.scheme == "http":
        cookie_kwargs["samesite"] = "lax"
        cookie_kwargs["secure"] = False
    if settings.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = settings.COOKIE_DOMAIN

    response.set_cookie(**cookie_kwargs)
    logger.info("[AUTH] %s logged in", user.email)
    return schemas.LoginResponse(user=schemas.UserOut.model_validate(user), access_token=token)


@router.get("/me", response_model=schemas.UserOut, summary="Get current user")
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=schemas.SuccessResponse, summary="Logout")
def logout(response: Response):
    response.delete_cookie("access_token", path="/")
    return schemas.SuccessResponse(status="ok", detail="Logged out")
