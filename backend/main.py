from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import problems, revisions, users
from core.config import settings
from core.database import engine, Base
from core.logging import configure_logging, get_logger, SERVICE_VERSION
from core.middleware import RequestLoggingMiddleware, SlowRequestMiddleware
from core.errors import register_error_handlers
import models  # noqa: F401  (registers tables on Base.metadata)

# Initialize logging before anything else
configure_logging(
    level=settings.LOG_LEVEL,
    json_logs=settings.LOG_JSON,
    log_sql=settings.LOG_SQL,
)

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", message="Practice Tracker API starting up")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("database_connected", message="Database tables initialized")

    yield

    log.info("shutdown", message="Practice Tracker API shutting down")
    await engine.dispose()
    log.debug("database_disposed", message="Database connections closed")


app = FastAPI(
    title="Practice Tracker API",
    description="Coding practice log with spaced-repetition revision scheduling, streaks and progress analytics",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

# Register structured error handlers
register_error_handlers(app)

# Middleware (order matters: last added = first executed)
app.add_middleware(SlowRequestMiddleware, slow_threshold_ms=settings.SLOW_REQUEST_MS)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(problems.router, prefix="/api/problems", tags=["problems"])
app.include_router(revisions.router, prefix="/api/revisions", tags=["revisions"])
app.include_router(users.router, prefix="/api/users", tags=["users"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": SERVICE_VERSION}


if __name__ == "__main__":
    import uvicorn

    log.info("server_config", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT, debug=settings.APP_DEBUG)
    uvicorn.run(
        "main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.APP_DEBUG,
        log_config=None,  # structlog owns logging
    )
