import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from khata.core.config import settings
from khata.utils.exceptions import KhataError
from khata.services.extraction import llm_service
from khata.api.routes import api_router


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# KhataError codes without an entry here answer 422
ERROR_STATUS_CODES = {
    "INVALID_API_KEY": status.HTTP_401_UNAUTHORIZED,
    "INVALID_IMAGE": status.HTTP_400_BAD_REQUEST,
    "TOO_MANY_IMAGES": status.HTTP_400_BAD_REQUEST,
}


def configure_logging() -> None:
    """Console sink plus a rotating file sink under ``settings.log_file``."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=settings.log_level)

    os.makedirs(os.path.dirname(settings.log_file) or ".", exist_ok=True)
    logger.add(settings.log_file, rotation="10 MB", retention="7 days", level=settings.log_level)


def error_body(message: str, error_code: str, details: dict) -> dict:
    return {"success": False, "error": message, "error_code": error_code, "details": details}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    # no system key is fine, callers can still pass ?apikey=
    try:
        await llm_service.initialize()
    except KhataError as e:
        logger.warning(f"Gemini not ready at startup: {e.message}")
    else:
        logger.info("Gemini extractor ready")

    yield

    logger.info(f"{settings.app_name} stopped")


configure_logging()

app = FastAPI(
    title=settings.app_name,
    description="""
## Khata marks reconciliation

Reads photographed handwritten marks registers, merges rows found in more than
one photo, validates them and matches students against the class roster.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# open to any origin; deployments put the school portal's domain here
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KhataError)
async def khata_error_handler(request: Request, exc: KhataError):
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.error_code, status.HTTP_422_UNPROCESSABLE_ENTITY),
        content=error_body(exc.message, exc.error_code, exc.details),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "An unexpected error occurred",
            "INTERNAL_ERROR",
            {"message": str(exc)} if settings.debug else {},
        ),
    )


app.include_router(api_router, prefix="/api", tags=["Khata"])


@app.get("/", tags=["root"])
async def root():
    """Service name, version and where the khata endpoints live"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Handwritten marks register reconciliation API",
        "docs": "/docs",
        "health": "/api/v1/health",
        "extract": "/api/v1/khata/extract",
        "match": "/api/v1/khata/match"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "khata.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
