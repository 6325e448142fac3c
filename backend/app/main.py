import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.core.exceptions import DashboardError, ValidationError, DuplicateEntry, NotFound, Forbidden
from app.core.logging import configure_logging
from app.api.routes import entries, dashboard, stores, data_io

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    DuplicateEntry: 409,
    NotFound: 404,
    Forbidden: 403,
}

app = FastAPI(
    title=settings.app_name,
    description="API for weekly store performance entry and dashboards",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    status_code = next(
        (code for error_class, code in ERROR_STATUS.items() if isinstance(exc, error_class)),
        400,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Storage error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=503,
        content={
            "error": "StorageError",
            "code": "storage_error",
            "message": "The data store is unavailable, please retry",
        },
    )


# Include routers
app.include_router(entries.router, prefix="/api/entries", tags=["Weekly Entries"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(stores.router, prefix="/api/stores", tags=["Stores"])
app.include_router(data_io.router, prefix="/api/data", tags=["Data Import/Export"])


@app.get("/")
async def root():
    return {"message": "Weekly Store Performance API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
