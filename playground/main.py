"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playground.api.auth import auth_router, user_router
from playground.api.middleware import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    register_exception_handlers,
)
from playground.api.routes import playground_router
from playground.api.routes import router as api_router
from playground.core.di_container import container as di_container
from playground.core.logging import setup_logging

logger = structlog.get_logger()

APP_VERSION = "0.1.0"

WIRED_MODULES = [
    "playground.api.routes",
    "playground.api.auth",
    "playground.auth.dependencies",
]

ROUTERS = (api_router, auth_router, user_router, playground_router)


async def _close_stores(*stores) -> None:
    for store in stores:
        close = getattr(store, "close", None)
        if close is not None:
            await close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire DI, build the stores, and close them again on shutdown."""
    config = di_container.config()
    setup_logging(log_level=config.log_level, json_format=not config.debug)
    di_container.wire(modules=WIRED_MODULES)

    # Misconfigured secrets or an unreachable store fail here, not on first request
    di_container.token_service()
    users = di_container.user_store()
    sessions = di_container.session_store()

    logger.info(
        "application_starting",
        app_name=config.app_name,
        store_backend=config.store.backend,
        llm_provider=config.llm.provider,
        llm_model=config.llm.model,
    )
    try:
        yield
    finally:
        logger.info("application_shutting_down")
        di_container.unwire()
        await _close_stores(sessions, users)


def create_app() -> FastAPI:
    """Build the application from the container's configuration."""
    config = di_container.config()

    app = FastAPI(
        title=config.app_name,
        description="Component playground sessions with account-scoped access control",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ExceptionHandlerMiddleware)
    register_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router, prefix=config.api_prefix)

    @app.get("/")
    async def root():
        return {
            "name": config.app_name,
            "version": APP_VERSION,
            "docs": app.docs_url,
            "health": f"{config.api_prefix}/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = di_container.config()
    uvicorn.run("playground.main:app", host=settings.host, port=settings.port, reload=settings.debug)
