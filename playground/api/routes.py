"""API routes for playground sessions."""

from typing import Annotated, Any

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Body, Depends, Query, status

from playground.api.schemas import ApiResponse, ok
from playground.auth.dependencies import CurrentUser, OptionalUser
from playground.core.config import AppConfig
from playground.core.di_container import DIContainer
from playground.session.service import SessionService

router = APIRouter()
playground_router = APIRouter(prefix="/playground", tags=["playground"])

JsonBody = Annotated[dict[str, Any], Body()]
Page = Annotated[int, Query(ge=1)]
Limit = Annotated[int | None, Query(ge=1)]


@router.get("/health", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def health(config: AppConfig = Depends(Provide[DIContainer.config])) -> ApiResponse:  # noqa: B008
    """Health check."""
    return ok(
        "OK",
        {"status": "ok", "store": config.store.backend, "llmProvider": config.llm.provider},
    )


@playground_router.get("/sessions", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def list_sessions(
    user: CurrentUser,
    page: Page = 1,
    limit: Limit = None,
    search: str = "",
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """List the caller's sessions, most recently modified first (no transcripts)."""
    query = service.build_query(page=page, limit=limit, search=search)
    return ok("Sessions retrieved successfully", await service.list_owned(user, query))


@playground_router.get("/sessions/{session_id}", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def get_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Get one of the caller's sessions, transcript included."""
    session = await service.get(user, session_id)
    return ok("Session retrieved successfully", {"session": session.to_dict()})


@playground_router.post(
    "/sessions",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
@inject
async def create_session(
    payload: JsonBody,
    user: CurrentUser,
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Create a session owned by the caller."""
    session = await service.create(user, payload)
    return ok("Session created successfully", {"session": session.to_dict()})


@playground_router.put("/sessions/{session_id}", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def update_session(
    session_id: str,
    payload: JsonBody,
    user: CurrentUser,
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Update any subset of a session's editable fields."""
    session = await service.update(user, session_id, payload)
    return ok("Session updated successfully", {"session": session.to_dict()})


@playground_router.post(
    "/sessions/{session_id}/messages",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
@inject
async def add_message(
    session_id: str,
    payload: JsonBody,
    user: CurrentUser,
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Append one message to the end of a session transcript."""
    session = await service.append_message(user, session_id, payload)
    return ok("Message added successfully", {"session": session.to_dict()})


@playground_router.delete("/sessions/{session_id}", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def delete_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Delete a session and its transcript."""
    await service.delete(user, session_id)
    return ok("Session deleted successfully")


@playground_router.get("/public", response_model=ApiResponse, response_model_exclude_none=True)
@inject
async def list_public_sessions(
    user: OptionalUser,
    page: Page = 1,
    limit: Limit = None,
    search: str = "",
    tags: str = "",
    service: SessionService = Depends(Provide[DIContainer.session_service]),  # noqa: B008
) -> ApiResponse:
    """Discover public sessions, newest first. Authentication is optional."""
    query = service.build_query(page=page, limit=limit, search=search, tags=tags)
    return ok("Public sessions retrieved successfully", await service.list_public(query))
