"""Registration, JWT login and the auth dependencies (current user, global handle)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.security import create_access_token, decode_access_token
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserDetail
from app.services.discepto import DisceptoHandle, get_discepto_handle
from app.services.users import UserHandle, authenticate, get_user_handle, register_user

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> UserHandle | None:
    """Dependency: the user of a valid Bearer JWT, or None for anonymous requests. 401 on a bad token."""
    if credentials is None:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")
    try:
        return get_user_handle(db, user_id)
    except NotFoundError:
        raise _unauthorized("User not found")


def get_current_user(
    user: Annotated[UserHandle | None, Depends(get_optional_user)],
) -> UserHandle:
    """Dependency: require a valid Bearer JWT. Raises 401 if missing or invalid."""
    if user is None:
        raise _unauthorized("Not authenticated")
    return user


def get_discepto(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[UserHandle | None, Depends(get_optional_user)],
) -> DisceptoHandle:
    """Dependency: global scope handle for the caller (anonymous allowed)."""
    return get_discepto_handle(db, user)


@router.post("/register", response_model=UserDetail, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserDetail:
    """Create an account. The first account ever created becomes global admin."""
    user = register_user(db, body.name, body.email, body.password)
    return user.read()


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    user = authenticate(db, body.email, body.password)
    return TokenResponse(access_token=create_access_token(sub=user.id), token_type="bearer")


@router.get("/me", response_model=UserDetail)
def read_me(user: Annotated[UserHandle, Depends(get_current_user)]) -> UserDetail:
    return user.read()


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(user: Annotated[UserHandle, Depends(get_current_user)]) -> None:
    user.delete()
