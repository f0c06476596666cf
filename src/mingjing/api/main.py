"""Main FastAPI application for the 职场明镜 analysis service."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mingjing import __version__, config
from mingjing.api.routers import analysis, page, sessions
from mingjing.api.services.session_registry import SessionRegistry

# Setup logging
logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s - [%(levelname)s] - %(name)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the analysis agent at startup, discard all sessions at shutdown."""
    logger.info("Starting analysis service (model: %s)...", config.GEMINI_MODEL)
    await SessionRegistry.load_all()
    yield
    logger.info("Shutting down and discarding sessions...")
    await SessionRegistry.unload_all()


app = FastAPI(
    title="职场明镜 - Workplace Speech Analysis API",
    description=(
        "Submits workplace speech (text or a chat screenshot) to a generative model "
        "and returns a structured PUA risk verdict, rendered as an exportable report card."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Include Routers ────────────────────────────────────────────────────
app.include_router(page.router,                                  tags=["Page"])
app.include_router(analysis.router, prefix="/api/analysis",      tags=["Analysis"])
app.include_router(sessions.router, prefix="/api/sessions",      tags=["Sessions"])


# ── Health Check ────────────────────────────────────────────────────────
@app.get("/health", tags=["Health"], summary="Service health check")
async def health():
    """
    Check API health.

    Returns:
        - status: "ok" if running
        - model: Gemini model used for analysis
        - sessions: Number of live sessions
    """
    return {
        "status": "ok",
        "model": config.GEMINI_MODEL,
        "sessions": SessionRegistry.active_sessions(),
    }


# ── API Info ────────────────────────────────────────────────────────────
@app.get("/api", tags=["Info"], summary="API information")
async def root():
    """Get API metadata."""
    return {
        "name": "职场明镜 API",
        "version": __version__,
        "description": "Workplace PUA risk analysis with Google Gemini",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "examples":       "/api/analysis/examples",
            "analyze":        "/api/analysis/analyze",
            "sessions":       "/api/sessions",
            "session_submit": "/api/sessions/{sessionId}/submit",
            "session_reset":  "/api/sessions/{sessionId}/reset",
            "report_png":     "/api/sessions/{sessionId}/report.png",
            "report_pdf":     "/api/sessions/{sessionId}/report.pdf",
        },
    }
