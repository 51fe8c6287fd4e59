import hashlib
import datetime
from typing import Tuple, Set
from uuid import uuid4

import filetype


# Allow-lists (ajuste selon tes besoins)
ALLOWED_IMAGE_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp", "image/avif"}

ALLOWED_VIDEO_MIME: Set[str] = {
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/quicktime",   # mov
    "video/x-matroska",  # mkv (selon filetype)
}


def detect_mime_and_ext(file_bytes: bytes) -> Tuple[str, str]:
    """
    Détecte le type réel via 'filetype'.
    Retourne (real_mime, ext_with_dot).
    """
    kind = filetype.guess(file_bytes)
    real_mime = kind.mime if kind else "application/octet-stream"
    ext = "." + (kind.extension if kind else "bin")
    return real_mime, ext


def validate_bytes(
    file_bytes: bytes,
    *,
    max_mb: int,
    allowed_mime: Set[str],
) -> Tuple[str, str, int, str]:
    """
    Retourne (real_mime, ext_with_dot, size_bytes, sha256).
    Lève ValueError si invalide.
    """
    size = len(file_bytes)
    if size == 0:
        raise ValueError("Empty file")
    if size > max_mb * 1024 * 1024:
        raise ValueError(f"File too large (max {max_mb} MB)")

    real_mime, ext = detect_mime_and_ext(file_bytes)

    if real_mime not in allowed_mime:
        raise ValueError(f"File type not allowed: {real_mime}")

    sha = hashlib.sha256(file_bytes).hexdigest()
    return real_mime, ext, size, sha


def build_object_key(*, prefix: str, ext_with_dot: str) -> str:
    """
    Construit une clé S3/MinIO stable et lisible.
    Exemple:
      prefix="videos"     -> videos/2025-12-18/<uuid>.mp4
      prefix="thumbnails" -> thumbnails/2025-12-18/<uuid>.jpg
    """
    today = datetime.date.today().isoformat()
    ext = ext_with_dot if ext_with_dot.startswith(".") else f".{ext_with_dot}"
    return f"{prefix}/{today}/{uuid4().hex}{ext}"
