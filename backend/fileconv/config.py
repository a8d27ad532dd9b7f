"""File converter configuration: paths, FFmpeg lookup, workers, database and server. Read from the environment and .env files."""
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
# Load .env from cwd, then backend/.env, then project root .env
load_dotenv()
load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Paths (override with env). Created on demand by the HTTP app, not at import.
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "outputs")))

# External media tool. FFMPEG_PATH pins an explicit binary; FFMPEG_DIR is the bundled/vendor folder.
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "").strip() or None
FFMPEG_DIR = Path(os.getenv("FFMPEG_DIR", str(BASE_DIR.parent / "vendor" / "ffmpeg")))
FFMPEG_AUTO_DOWNLOAD = _env_bool("FFMPEG_AUTO_DOWNLOAD", sys.platform == "win32")
FFMPEG_DOWNLOAD_URL = os.getenv(
    "FFMPEG_DOWNLOAD_URL",
    "https://github.com/BtbN/FFmpeg-Builds/releases/download/latest/ffmpeg-master-latest-win64-gpl.zip",
)
FFMPEG_FALLBACK_URL = os.getenv(
    "FFMPEG_FALLBACK_URL",
    "https://www.gyan.dev/ffmpeg/builds/packages/ffmpeg-6.1.1-essentials_build.zip",
)
FFMPEG_DOWNLOAD_TIMEOUT = int(os.getenv("FFMPEG_DOWNLOAD_TIMEOUT", "600"))
# Per-invocation limit in seconds for one transcode
FFMPEG_TIMEOUT = int(os.getenv("FFMPEG_TIMEOUT", "3600"))

# Concurrency: in-flight conversions for batch runs
MAX_WORKERS = int(os.getenv("MAX_WORKERS", str(os.cpu_count() or 4)))

# Upload limit for the HTTP surface
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "500"))
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Conversion history. SQLite by default; any SQLAlchemy URL (e.g. mysql+pymysql://...) works.
DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
if not DATABASE_URL:
    DATABASE_URL = f"sqlite:///{BASE_DIR / 'data' / 'fileconv.db'}"

# Server (for uvicorn)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
# CORS: comma-separated origins, e.g. "http://localhost:5173,http://127.0.0.1:5173"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",") if o.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("fileconv")
