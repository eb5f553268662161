"""API routes for accounts: registration, login, token refresh and profile."""

from typing import Annotated, Any

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Body, Depends, status

from playground.api.schemas import ApiResponse, ok
from playground.auth.dependencies import CurrentUser, OptionalUser
from playground.auth.service import AuthService
from playground.core.di_container import DIContainer
from playground.core.logging import get_logger

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
user_router = APIRouter(prefix="/user", tags=["user"])

JsonBody = Annotated[dict[str, Any], Body()]


@auth_router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
@inject
async def register(
    payload: JsonBody,
    service: AuthService = Depends(Provide[DIContainer.auth_service]),  # noqa: B008
) -> ApiResponse:
    """Create an account and return the user with a fresh token pair."""
    user, pair = await service.register(payload)
    return ok("User registered successfully", {"user": user.to_public_dict(), **pair.to_dict()})


@auth_router.post("/login", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def login(
    payload: JsonBody,
    service: AuthService = Depends(Provide[DIContainer.auth_service]),  # noqa: B008
) -> ApiResponse:
    user, pair = await service.login(payload)
    return ok("Login successful", {"user": user.to_public_dict(), **pair.to_dict()})


@auth_router.post("/refresh", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def refresh(
    payload: JsonBody,
    service: AuthService = Depends(Provide[DIContainer.auth_service]),  # noqa: B008
) -> ApiResponse:
    """Exchange a refresh token for a new access/refresh pair."""
    pair = await service.refresh(payload.get("refreshToken"))
    return ok("Token refreshed successfully", pair.to_dict())


@auth_router.post("/logout", response_model=ApiResponse, response_model_exclude_none=True)
async def logout(user: OptionalUser) -> ApiResponse:
    """Tokens are stateless; the client discards its copies."""
    if user is not None:
        logger.info("user_logged_out", user_id=user.id)
    return ok("Logout successful")


@user_router.get("/profile", response_model=ApiResponse, response_model_exclude_none=True)
async def get_profile(user: CurrentUser) -> ApiResponse:
    return ok("Profile retrieved successfully", {"user": user.to_public_dict()})


@user_router.put("/profile", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def update_profile(
    payload: JsonBody,
    user: CurrentUser,
    service: AuthService = Depends(Provide[DIContainer.auth_service]),  # noqa: B008
) -> ApiResponse:
    """Update the caller's display name and/or avatar."""
    updated = await service.update_profile(user, payload)
    return ok("Profile updated successfully", {"user": updated.to_public_dict()})


@user_router.put("/password", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def change_password(
    payload: JsonBody,
    user: CurrentUser,
    service: AuthService = Depends(Provide[DIContainer.auth_service]),  # noqa: B008
) -> ApiResponse:
    await service.change_password(user, payload)
    return ok("Password updated successfully")
