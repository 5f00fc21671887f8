from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import AuthService, get_auth_service, get_current_user
from ..models import UserEntity
from ..schemas import LoginRequest, LoginResponse, RegisterRequest, UserEnvelope
from ..utils import user_out

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account. The password is stored only as a salted hash.",
    responses={
        201: {"description": "User registered"},
        400: {"description": "Invalid input or email already registered"},
    },
)
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)) -> UserEnvelope:
    user = auth.register(payload.email, payload.password, payload.name)
    return UserEnvelope(user=user_out(user))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Exchange email and password for a bearer credential.",
    responses={
        200: {"description": "Credential issued"},
        401: {"description": "Invalid email or password"},
    },
)
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> LoginResponse:
    """
    Unknown email and wrong password produce the same 401 response.
    """
    token, user = auth.login(payload.email, payload.password)
    return LoginResponse(token=token, user=user_out(user))


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Current user",
    responses={401: {"description": "Missing, invalid or expired credential"}},
)
def me(user: UserEntity = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=user_out(user))
