from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.exceptions.errors import ApplicationException, StoreUnavailableError
from app.core.logger import get_logger

logger = get_logger("exception_handlers")


async def application_exception_handler(request: Request, exc: ApplicationException):
    if isinstance(exc, StoreUnavailableError):
        logger.error(f"Store error on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"Application error on {request.url.path}: {exc.message}")
    return exc.to_response()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {repr(exc)}")
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred"}
    )
