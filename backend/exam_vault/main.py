"""
Exam Vault - Main FastAPI Application
Combines all modules: auth, papers, uploads, contributions
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import CORS_ORIGINS
from .core.database import engine, Base
from .core.errors import ExamVaultError, AuthenticationRequired, ValidationFailed
from .core.storage import close_object_store
from .models import User, Paper  # noqa: F401  registers tables on Base

# Import routers
from .modules.auth.router import router as auth_router
from .modules.papers.router import router as papers_router
from .modules.uploads.router import router as uploads_router
from .modules.contributions.router import router as contributions_router

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Exam Vault starting up...")

    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    close_object_store()
    logger.info("Exam Vault shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Exam Vault API",
    description="""
    Exam paper archive - Unified API

    ## Modules:
    - **Auth**: Identity provider sign-in, session refresh
    - **Papers**: Catalog, submission, admin approval/rejection
    - **Uploads**: PDF upload to object storage
    - **Contributions**: Contributor leaderboard
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS != ["*"] else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ExamVaultError)
async def exam_vault_error_handler(request: Request, exc: ExamVaultError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters get the same envelope as ValidationFailed"""
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        name = ".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else "request")
        if name not in fields:
            fields.append(name)
    error = ValidationFailed(fields, message="Invalid request: " + ", ".join(fields))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Include routers
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(papers_router, prefix="/api/papers", tags=["Papers"])
app.include_router(uploads_router, prefix="/api/uploads", tags=["Uploads"])
app.include_router(contributions_router, prefix="/api/contributions", tags=["Contributions"])


# ============ HEALTH CHECK ============
@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "message": "Exam Vault API is running",
        "version": "1.0.0"
    }


@app.get("/")
def root():
    """Root endpoint - API info"""
    return {
        "name": "Exam Vault API",
        "version": "1.0.0",
        "docs": "/docs",
        "modules": ["auth", "papers", "uploads", "contributions"]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
