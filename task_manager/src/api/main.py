import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import AppError
from .logging_setup import setup_logging
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .settings import get_settings
from .utils import error_envelope

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, login and bearer credential checks."},
    {
        "name": "tasks",
        "description": "CRUD operations on the caller's own tasks.",
    },
]

_settings = get_settings()

app = FastAPI(
    title="Task Manager Backend",
    description="Personal task manager API with bearer-credential authentication.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=not allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, message: str, exc: BaseException, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(message, exc, production=get_settings().is_production),
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Map domain failures onto their status code with the shared error body:
        {"success": false, "message": "...", "stack": "..." | null}
    """
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return _error_response(exc.status_code, exc.message, exc, headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed or missing fields are InvalidInput (400), not FastAPI's default 422.
    """
    errors = exc.errors()
    message = "Invalid input"
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = str(first.get("msg", "")).removeprefix("Value error, ")
        message = f"Invalid input: {field}: {detail}" if field else f"Invalid input: {detail}"
    return _error_response(status.HTTP_400_BAD_REQUEST, message, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), exc, getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", exc)


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": get_settings().persistence_backend}


# Include routers
app.include_router(auth_router.router)
app.include_router(tasks_router.router)


# PUBLIC_INTERFACE
def main() -> None:
    """
    Serve the API with uvicorn. Root logging is configured here, once, so that
    importing the app module leaves the host process's logging untouched.
    """
    settings = get_settings()
    setup_logging(settings.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info("Starting task manager API on %s:%s (backend=%s)",
                settings.host, settings.port, settings.persistence_backend)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
