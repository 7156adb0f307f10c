"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.errors import register_error_handlers
from api.routes import poster, sources
from services.image_io import configure_decoder_limits, register_heif_opener
from services.text_layers import ensure_fonts_registered
from settings import settings

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


class PrivateNetworkAccessMiddleware(BaseHTTPMiddleware):
    """Answer Private Network Access preflights from the hosted editor."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" and request.headers.get("access-control-request-private-network"):
            response = Response(status_code=204)
            response.headers["Access-Control-Allow-Origin"] = request.headers.get("origin", "*")
            response.headers["Access-Control-Allow-Methods"] = "*"
            response.headers["Access-Control-Allow-Headers"] = "*"
            response.headers["Access-Control-Allow-Private-Network"] = "true"
            return response

        response = await call_next(request)
        response.headers["Access-Control-Allow-Private-Network"] = "true"
        return response


app = FastAPI(
    title="Line Art Poster API",
    description="Composites line-art posters and exports print-ready JPEGs",
    version="0.1.0",
)

# Private Network Access middleware (must be before CORS)
app.add_middleware(PrivateNetworkAccessMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

register_error_handlers(app)

app.include_router(poster.router, tags=["poster"])
app.include_router(sources.router, tags=["sources"])


@app.on_event("startup")
def startup_event():
    """Raise decoder limits and register fonts and the HEIF opener once per process."""
    configure_decoder_limits()
    ensure_fonts_registered()
    if register_heif_opener():
        logger.info("HEIF/HEIC support enabled")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Line Art Poster API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "image_generation_configured": bool(settings.GEMINI_API_KEY),
    }
