"""Main application module for the photo matching service."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photomatch.api import router as api_v1_router
from photomatch.core.config import settings
from photomatch.core.container import container
from photomatch.core.exceptions import ServiceNotInitializedError
from photomatch.core.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[Any, None]:
    """Handle application startup and shutdown events.

    Args:
        app: FastAPI application instance

    Returns:
        AsyncGenerator[Any, None]: Async context manager for app lifecycle
    """
    logger.info(
        "Starting up photo matching service",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        server_side_detection=settings.SERVER_SIDE_DETECTION,
    )

    await container.initialize()
    logger.info("Initialized application services")

    yield

    logger.info("Shutting down photo matching service")
    await container.cleanup()
    logger.info("Cleaned up application resources")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.exception_handler(ServiceNotInitializedError)
async def service_not_initialized_handler(request: Request, exc: ServiceNotInitializedError) -> JSONResponse:
    logger.error("Service requested before initialization", error=str(exc), path=request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service is starting up"})


@app.get("/health")
@app.get(f"{settings.API_V1_STR}/health")
async def health_check() -> dict:
    """Basic health check endpoint.

    Returns:
        dict: Health status
    """
    logger.info("Health check requested")
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("photomatch.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
