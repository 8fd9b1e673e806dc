'''

'''
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .database import engine as db_engine
from .common.logger import log
from .common.config import settings
from .common.exceptions import (
    RosterError,
    IdentityConflict,
    IdentityInvalid,
    NotFound,
    ProvisioningIncomplete,
    StorageError
)
from .services.identity_service import IdentityService
from .services.auth_service import ensure_bootstrap_admin
from .api import auth, teachers, circles, students, recitations, attendance

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    # --- On App Startup ---
    log.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}...")
    db_engine.create_db_engine_and_session_factory()
    if settings.CREATE_TABLES_ON_STARTUP:
        await db_engine.init_models()

    async with db_engine.AsyncSessionLocal() as session:
        await ensure_bootstrap_admin(IdentityService(session))

    yield # --- Application is now running ---

    # --- On App Shutdown ---
    log.info("Application lifespan shutdown...")
    await db_engine.dispose_db_engine()


# ---- CREATING THE APP ----
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# --- Add CORS Middleware ---
origins = [
    # URL of testing frontend
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",
]

# Extend with environment-specific origins
origins.extend(settings.BACKEND_CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],)
# --- End of CORS Middleware ---

# --- Domain errors -> HTTP ---
ERROR_STATUS_CODES = {
    IdentityConflict: status.HTTP_409_CONFLICT,
    IdentityInvalid: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

@app.exception_handler(ProvisioningIncomplete)
async def provisioning_incomplete_handler(request: Request, exc: ProvisioningIncomplete):
    """
    The identity exists but the account is unfinished. The body carries
    what the caller needs to run the repair endpoint.
    """
    log.error(f"Provisioning incomplete for identity {exc.identity_id} at step '{exc.failed_step}'.")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": exc.detail,
            "identity_id": str(exc.identity_id),
            "failed_step": exc.failed_step,
        },
    )

@app.exception_handler(RosterError)
async def roster_error_handler(request: Request, exc: RosterError):
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content={"detail": exc.detail})


@app.get("/")
async def health_check():
    return {"status": "ok", "message": f"{settings.APP_NAME} is running"}

app.include_router(auth.router)
app.include_router(teachers.router)
app.include_router(circles.router)
app.include_router(students.router)
app.include_router(recitations.router)
app.include_router(attendance.router)
