import asyncio
import logging
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from toystore_auth.config import settings
from toystore_auth.core.dependencies import get_sql_pool
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.modules.auth import routes as auth_routes
from toystore_auth.modules.admin import routes as admin_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

# Limits apply only to routes decorated with @limiter.limit; signup and login are not
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.state.sql_pool = None
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def _log_loop_exception(loop, context):
    # Keep serving; a stray task failure must not take the process down.
    exc = context.get("exception")
    logger.error("Unhandled error in event loop: %s", context.get("message"), exc_info=exc)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


class RequestLoggingMiddleware:
    """Logs method and path only; request bodies carry passwords."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            logger.info("%s %s", scope["method"], scope["path"])
        await self.app(scope, receive, send)


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes are mounted at the root; the frontend calls /signup and /login directly
app.include_router(auth_routes.router)
app.include_router(admin_routes.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
    if not settings.supabase_configured:
        logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY not set; server endpoints will fail without proper env")
    app.state.sql_pool = SqlPool.from_settings(settings)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    pool = app.state.sql_pool
    if pool is not None:
        pool.dispose()
        app.state.sql_pool = None


@app.get("/", response_class=PlainTextResponse)
async def root():
    return (
        "Auth server is running. Available endpoints:\n"
        "- GET /health\n"
        "- GET /dbtest\n"
        "- POST /signup\n"
        "- POST /login\n"
    )


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "ok"}


@app.get("/dbtest")
def dbtest(sql_pool: Optional[SqlPool] = Depends(get_sql_pool)):
    """Verify the direct Postgres connection, if configured"""
    if sql_pool is None:
        raise HTTPException(status_code=500, detail="DATABASE_URL not configured")
    try:
        now = sql_pool.now()
    except Exception as e:
        logger.error(f"dbtest error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "now": now}


def run():
    import uvicorn

    uvicorn.run("toystore_auth.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
