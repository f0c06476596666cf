"""
Configuration Module
Settings for the Gemini provider, image limits, report export and the API server.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Base Paths ---
PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
TEMPLATES_DIR = os.path.join(PACKAGE_DIR, "api", "templates")

# --- API Keys ---
# API_KEY is the name the hosted deployment used; GOOGLE_API_KEY wins when both are set.
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY", "")

# --- Analysis Settings ---
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
ANALYSIS_TEMPERATURE = 0.4

# --- Image Input ---
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(20 * 1024 * 1024)))  # 20 MB
ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}
DEFAULT_IMAGE_MIME = "image/png"

# --- Sessions ---
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))  # 1 hour since last access
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))

# --- Report Export ---
REPORT_SCALE = int(os.getenv("REPORT_SCALE", "2"))
REPORT_BACKGROUND = "#fafaf9"
REPORT_FONT_PATH = os.getenv("REPORT_FONT_PATH", "")

# CJK-capable fonts commonly present on Linux / macOS / Windows hosts
_FONT_CANDIDATES = [
    "/usr/share/fonts/opentype/noto/NotoSerifCJK-Regular.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/wqy/wqy-zenhei.ttc",
    "/usr/share/fonts/truetype/wqy/wqy-microhei.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "/System/Library/Fonts/STHeiti Light.ttc",
    r"C:\Windows\Fonts\msyh.ttc",
    r"C:\Windows\Fonts\simsun.ttc",
]


def _auto_detect_font() -> str:
    """Return the configured report font, or the first CJK font found on this host."""
    if REPORT_FONT_PATH and os.path.exists(REPORT_FONT_PATH):
        return REPORT_FONT_PATH
    return next((p for p in _FONT_CANDIDATES if os.path.exists(p)), "")


REPORT_FONT = _auto_detect_font()

# --- Server ---
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
