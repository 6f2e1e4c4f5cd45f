# studysphere/services/storage.py
import logging
import os
import random
import re
import time
from pathlib import Path
from typing import Iterable, Tuple

from flask import current_app
from werkzeug.datastructures import FileStorage

from studysphere.errors import BadRequest

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    "homework": {".pdf", ".png", ".jpg", ".jpeg"},
    "note": {".mp3", ".wav", ".webm", ".ogg", ".m4a"},
    "research": {".pdf", ".doc", ".docx"},
    "quiz": {".pdf", ".docx"},
}


def _upload_dir() -> Path:
    p = Path(current_app.config["UPLOAD_FOLDER"])
    p.mkdir(parents=True, exist_ok=True)
    return p


def unique_filename(original: str) -> str:
    """``notes v2.pdf`` -> ``notes_v2-1718000000000-123456789.pdf``"""
    ext = Path(original).suffix.lower()
    stem = re.sub(r"[^a-zA-Z0-9]", "_", Path(original).stem) or "upload"
    return f"{stem}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def save_upload(file: FileStorage, allowed: Iterable[str]) -> Tuple[str, str]:
    """Validate and store an uploaded artifact; returns ``(path, original_filename)``."""
    if file is None or not file.filename:
        raise BadRequest("No file uploaded")

    ext = Path(file.filename).suffix.lower()
    if ext not in allowed:
        raise BadRequest(f"Invalid file type '{ext or file.filename}'. Allowed: {', '.join(sorted(allowed))}")

    path = _upload_dir() / unique_filename(file.filename)
    file.save(str(path))

    if path.stat().st_size == 0:
        remove_file(str(path))
        raise BadRequest("Uploaded file is empty")

    return str(path), file.filename


def remove_file(path: str) -> bool:
    """Best-effort delete; failures are logged, never raised."""
    if not path:
        return False
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        logger.warning("artifact already gone: %s", path)
    except OSError as e:
        logger.error("could not delete artifact %s: %s", path, e)
    return False
