# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .db import create_db_and_tables
from .errors import AppError
from .repository import MemoryStore
from .routers import (
    action_logs_routes,
    appointments_routes,
    auth_routes,
    barber_routes,
    barbers_routes,
    catalog_routes,
    completed_services_routes,
    invites_routes,
    payments_routes,
    product_sales_routes,
    reports_routes,
    users_routes,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# passlib probes the bcrypt version noisily
logging.getLogger("passlib").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    if config.STORAGE_BACKEND == "memory":
        app.state.memory_store = MemoryStore()
        logger.warning("Using in-memory storage; data is lost on restart")
    else:
        create_db_and_tables()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barbershop API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a plain 400 with the first problem spelled out."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router, prefix="/api")
app.include_router(users_routes.router, prefix="/api")
app.include_router(barbers_routes.router, prefix="/api")
app.include_router(barber_routes.router, prefix="/api")
app.include_router(catalog_routes.router, prefix="/api")
app.include_router(appointments_routes.router, prefix="/api")
app.include_router(completed_services_routes.router, prefix="/api")
app.include_router(payments_routes.router, prefix="/api")
app.include_router(product_sales_routes.router, prefix="/api")
app.include_router(invites_routes.router, prefix="/api")
app.include_router(action_logs_routes.router, prefix="/api")
app.include_router(reports_routes.router, prefix="/api")
