"""Vercel serverless entrypoint serving every route of the photo nutrition API."""

import sys
from pathlib import Path

_SRC_DIR = Path(__file__).resolve().parent.parent / "src"
if _SRC_DIR.is_dir() and str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from photo_nutrition.api.asgi import app  # noqa: E402

__all__ = ["app"]
