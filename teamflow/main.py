import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from teamflow.core.config import settings
from teamflow.core.database import engine, Base
from teamflow.models import ai_trace, evidence, project, task, user  # noqa: F401 (tables)
from teamflow.routers import health, auth, users, projects, tasks, audit, ai, ai_traces, dashboard, uploads
from teamflow.services.ai_providers import AIConfigurationError, build_gateway

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Init DB
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # pas de clé IA -> le serveur refuse de démarrer
    app.state.ai_gateway = build_gateway(settings)
    yield


app = FastAPI(
    title="TeamFlow API",
    version="1.0.0",
    lifespan=lifespan
)


# ============ ERREURS ============
# Toutes les erreurs sortent au format {"success": false, "error": ...}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Validation error", "details": details}
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Database error"})


@app.exception_handler(AIConfigurationError)
async def ai_configuration_exception_handler(request: Request, exc: AIConfigurationError):
    logger.error(f"AI gateway unavailable: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(audit.router)
app.include_router(ai.router)
app.include_router(ai_traces.router)
app.include_router(dashboard.router)
app.include_router(uploads.router)
