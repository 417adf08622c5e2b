"""ASGI entry point for serverless hosts (e.g. Vercel maps /api to this file)."""

import tempfile
from pathlib import Path

from app import create_app
from core.config import Config
from ui.file_logger import FileLogger

# Serverless filesystems are read-only outside the temp dir
LOG_FILE = Path(tempfile.gettempdir()) / "gemini-proxy" / "proxy.log"

app = create_app(Config(), FileLogger(LOG_FILE))
