import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse
from app.exceptions.handlers import (
    application_exception_handler,
    http_exception_handler,
    generic_exception_handler
)
from app.exceptions.errors import ApplicationException
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from app.core.config import settings
from app.database.base import Base
from app.database.connection import engine
from app.models import *  # noqa: F401,F403  register tables on Base.metadata

from app.api.v1.routes import health_router, breathing_router, progress_router
from app.middlewares.clerk_auth import ClerkAuthMiddleware, whitelisted_routes
from app.utils.breathing_instance import initialize_store

from app.core.logger import get_logger

logger = get_logger("breathpace-backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 BreathPace API is starting...")
    try:
        if not settings.USES_LOCAL_STORE:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Breathing database tables ensured.")

        initialize_store()

    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise e

    yield

    await engine.dispose()
    logger.info("🛑 BreathPace API is shutting down...")


swagger_ui_parameters = {
    "deepLinking": True,
    "displayRequestDuration": True,
    "tryItOutEnabled": True,
}

if settings.IS_DEVELOPMENT:
    swagger_ui_parameters["persistAuthorization"] = True

app = FastAPI(
    title="BreathPace Backend",
    version="1.0.0",
    lifespan=lifespan,
    description="""
    Adaptive breathing sessions: per-user timings, session lifecycle and progress analytics.

    ## Authentication

    **Database backend**: send a Clerk JWT as `Authorization: Bearer <token>`.
    In development the `X-Development-User` header can stand in for a token.

    **Local backend**: single offline user, no token required.
    """,
    swagger_ui_parameters=swagger_ui_parameters,
)

# CORS configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    ClerkAuthMiddleware,
    whitelisted_routes=whitelisted_routes
)

# Include API routers
app.include_router(health_router, prefix="/api/v1")
app.include_router(breathing_router, prefix="/api/v1")
app.include_router(progress_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "BreathPace Backend API",
        "docs": "/docs",
        "store_backend": settings.STORE_BACKEND,
        "version": "1.0.0"
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        errors.append({
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input")) if error.get("input") is not None else None
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors,
            "url": str(request.url),
            "method": request.method
        }
    )


# Exception handlers
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        limit_concurrency=20,
        timeout_keep_alive=30
    )
