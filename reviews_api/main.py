import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from reviews_api.config import settings
from reviews_api.database import Database
from reviews_api.errors import ReviewsError, Unavailable, from_db_error

logger = logging.getLogger("reviews_api")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers for a JSON-only API."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.setLevel(settings.LOG_LEVEL)

    database = Database(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=settings.DB_ECHO,
    )
    if settings.CREATE_TABLES:
        await database.create_all()
    app.state.database = database
    logger.info("Reviews API ready on port %s", settings.APP_PORT)
    try:
        yield
    finally:
        await database.dispose()


app = FastAPI(title="reviews", description="Product Reviews API", lifespan=lifespan)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)


@app.exception_handler(ReviewsError)
async def reviews_error_handler(request: Request, exc: ReviewsError):
    if isinstance(exc, Unavailable):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc.__cause__)
    else:
        logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.detail)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    error = from_db_error(exc)
    error.__cause__ = exc
    return await reviews_error_handler(request, error)


from reviews_api.routes.api import router as api_router  # noqa: E402

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("reviews_api.main:app", host="0.0.0.0", port=settings.APP_PORT)
