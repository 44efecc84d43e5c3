import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.exceptions import FeatureLimitExceeded, ExternalServiceError
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.usage import routes as usage_routes
from app.modules.transcription import routes as transcription_routes
from app.modules.ai import routes as ai_routes
from app.modules.journal import routes as journal_routes
from app.modules.boundaries import routes as boundaries_routes
from app.modules.community import routes as community_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(FeatureLimitExceeded)
async def feature_limit_exception_handler(request: Request, exc: FeatureLimitExceeded):
    logger.info(f"Feature limit hit on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ExternalServiceError)
async def external_service_exception_handler(request: Request, exc: ExternalServiceError):
    logger.error(f"Upstream failure on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


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


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api")
app.include_router(profiles_routes.router, prefix="/api")
app.include_router(usage_routes.router, prefix="/api")
app.include_router(transcription_routes.router, prefix="/api")
app.include_router(ai_routes.router, prefix="/api")
app.include_router(journal_routes.router, prefix="/api")
app.include_router(boundaries_routes.router, prefix="/api")
app.include_router(community_routes.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.transcription_reconciler_enabled:
        from app.modules.transcription.stuck_scheduler import stuck_reconciler_loop
        app.state.reconciler_task = asyncio.create_task(stuck_reconciler_loop())
        logger.info(
            f"Stuck transcription reconciler started - checking every "
            f"{settings.transcription_reconciler_interval} seconds"
        )


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "reconciler_task", None)
    if task:
        task.cancel()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to reclaim-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: configuration needed by the transcription and AI paths."""
    return {
        "status": "ready",
        "supabase": bool(settings.supabase_url),
        "gladia": bool(settings.gladia_api_key),
        "gemini": bool(settings.google_ai_api_key),
    }
