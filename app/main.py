import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.config.catalog_config import SUBJECTS
from app.core.admin_gate import AdminGateMiddleware
from app.core.dependencies import resolve_session_token
from app.core.security_headers import SecurityHeadersMiddleware
from app.database.record_store import RecordStore, RecordStoreError
from app.database.supabase_client import get_supabase
from app.modules.auth import routes as auth_routes
from app.modules.catalog import routes as catalog_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.admin import routes as admin_routes

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


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Added innermost first: requests pass CORS, security headers, then the admin gate
app.add_middleware(
    AdminGateMiddleware,
    resolve_session=resolve_session_token,
    dashboard_path=settings.admin_dashboard_path,
    login_path=settings.admin_login_path,
    cookie_name=settings.session_cookie_name,
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public API
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(catalog_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
# Admin dashboard and its login page
app.include_router(auth_routes.login_router)
app.include_router(admin_routes.router, prefix=settings.admin_dashboard_path)


@app.on_event("startup")
async def startup_event():
    logger.info(
        f"Starting {settings.app_name} ({settings.environment}); "
        f"bucket={settings.storage_bucket}, dashboard={settings.admin_dashboard_path}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to the student resource portal", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
def ready():
    """Ready once the record store answers a count query"""
    try:
        RecordStore(get_supabase()).count(SUBJECTS)
    except RecordStoreError as e:
        logger.warning(f"Readiness check failed: {e.message}")
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
