import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from casesim.config import settings
from casesim.api.routes import router as api_router
from casesim.middleware.request_logging import RequestLoggingMiddleware
from casesim.services.errors import (
    EmptyResponse,
    InvalidCredential,
    InvalidInput,
    InvestigationError,
    MalformedResponse,
    SchemaViolation,
    UpstreamFailure,
)
from casesim.services.investigation import CaseNotReady, TurnInProgress

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidCredential: 401,
    EmptyResponse: 502,
    MalformedResponse: 502,
    SchemaViolation: 502,
    UpstreamFailure: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting mock investigation simulator")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Model: {settings.gemini_model}")
    settings.validate_config()
    yield
    logger.info("Shutting down mock investigation simulator")


app = FastAPI(
    title="Mock Investigation Simulator API",
    description="Precedent-driven interrogation role-play backed by Gemini",
    version="1.0.0",
    lifespan=lifespan
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


@app.exception_handler(InvestigationError)
async def investigation_error_handler(request: Request, exc: InvestigationError):
    status_code = ERROR_STATUS.get(type(exc), 502)
    logger.warning(
        f"{exc.__class__.__name__} in {request.method} {request.url.path} | "
        f"ID: {_request_id(request)} | {exc.message[:200]}"
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(CaseNotReady)
@app.exception_handler(TurnInProgress)
async def conflict_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "error_type": exc.__class__.__name__},
    )


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error_type": "InvalidInput"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Consistent body for anything unclassified, with the request id for debugging."""
    request_id = _request_id(request)
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path} | "
        f"ID: {request_id} | Error: {str(exc)}",
        exc_info=True
    )
    error_detail = {
        "detail": "Internal server error",
        "request_id": request_id,
        "path": str(request.url.path)
    }
    if settings.debug:
        error_detail["error_type"] = exc.__class__.__name__
        error_detail["error_message"] = str(exc)
    return JSONResponse(
        status_code=500,
        content=error_detail,
        headers={"X-Request-ID": request_id}
    )


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "casesim.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
