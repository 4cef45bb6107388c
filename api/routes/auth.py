"""
Authentication routes - register, login, token refresh, verify, logout.
"""

from fastapi import APIRouter, Depends, status
import logging

from api.dependencies import get_auth_service, get_current_user
from api.responses import success_response
from domain.models import User
from domain.schemas import LoginRequest, RefreshRequest, RegisterRequest
from services import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("recipemanager.api.auth")


def public_user(user: User) -> dict:
    """User fields safe to return to clients"""
    return user.model_dump(
        by_alias=True, mode="json", exclude={"password_hash", "refresh_token"}
    )


def token_response(tokens: dict, message: str) -> dict:
    return success_response(
        {
            "token": tokens["token"],
            "refreshToken": tokens["refreshToken"],
            "user": public_user(tokens["user"]),
        },
        message,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    tokens = await auth.register(body.username, body.email, body.password)
    return token_response(tokens, "User registered")


@router.post("/login")
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    tokens = await auth.login(body.login, body.password)
    return token_response(tokens, "Login successful")


@router.post("/refresh")
async def refresh(body: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    tokens = await auth.refresh(body.refresh_token)
    return token_response(tokens, "Token refreshed")


@router.get("/verify")
async def verify(user: User = Depends(get_current_user)):
    return success_response({"user": public_user(user)}, "Token is valid")


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(user)
    return success_response(message="Logged out")
