"""
Yatra Seva – FastAPI Backend

Main entry point. Sets up logging, CORS, error envelopes, includes all
routes, initializes DB.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from config import APP_NAME, APP_VERSION, CORS_ORIGINS, LOG_LEVEL
from database import init_db
from errors import ServiceError, ValidationFailed
from responses import error_body

# Import route modules
from routes.admin import router as admin_router
from routes.yatras import router as yatras_router
from routes.hotels import router as hotels_router
from routes.registrations import router as registrations_router
from routes.uploads import router as uploads_router
from routes.locations import router as locations_router
from routes.spiritual import router as spiritual_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    await init_db()
    logger.info(f"{APP_NAME} {APP_VERSION} started")
    yield


app = FastAPI(
    title=APP_NAME,
    description="Pilgrimage registration, PNR tracking and hotel room allotment",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error envelopes
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)),
                        headers=getattr(exc, "headers", None))


@app.exception_handler(ValidationFailed)
async def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=exc.status_code,
                        content=error_body(exc.message, "Validation failed", exc.errors))


@app.exception_handler(ServiceError)
async def service_error(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e["loc"] if p != "body"), "message": e["msg"]}
        for e in exc.errors()
    ]
    message = ", ".join(f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors)
    return JSONResponse(status_code=400, content=error_body(message, "Validation failed", errors))


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body(str(exc) or "Unknown error", "Internal server error"))


# Include routers
app.include_router(admin_router)
app.include_router(yatras_router)
app.include_router(hotels_router)
app.include_router(registrations_router)
app.include_router(uploads_router)
app.include_router(locations_router)
app.include_router(spiritual_router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn
    from config import HOST, PORT
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
