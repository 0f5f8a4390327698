from __future__ import annotations

import logging
import time
from urllib.parse import urlparse

import requests
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from .models import Fragrance

logger = logging.getLogger(__name__)

USER_AGENT = "FragrantiqueBot/1.0 (+https://fragrantique.net)"


class ImageError(Exception):
    """upstream=True means the remote side failed, not the caller's input."""

    def __init__(self, message, *, upstream=False):
        super().__init__(message)
        self.upstream = upstream


def _require_http(url) -> str:
    if not url or not isinstance(url, str):
        raise ImageError("Missing url")
    scheme = urlparse(url).scheme
    if scheme not in ("http", "https"):
        raise ImageError("Only http/https allowed")
    return url


def remove_background(fragrance: Fragrance, image_url: str, *, folder: str) -> str:
    """Fetch the source bottle photo, cut it out via remove.bg, store the PNG, return its URL."""
    _require_http(image_url)
    if not settings.REMOVE_BG_API_KEY:
        raise ImageError("REMOVE_BG_API_KEY is not configured", upstream=True)

    try:
        src = requests.get(image_url, timeout=settings.OUTBOUND_TIMEOUT,
                           headers={"User-Agent": USER_AGENT})
        src.raise_for_status()
    except requests.RequestException as exc:
        raise ImageError(f"Failed to fetch source image: {exc}", upstream=True) from exc

    try:
        rb = requests.post(
            settings.REMOVE_BG_URL,
            headers={"X-Api-Key": settings.REMOVE_BG_API_KEY},
            files={"image_file": ("source.jpg", src.content, "image/jpeg")},
            data={"size": "auto"},
            timeout=settings.OUTBOUND_TIMEOUT * 6,
        )
    except requests.RequestException as exc:
        raise ImageError(f"remove.bg failed: {exc}", upstream=True) from exc
    if not rb.ok:
        raise ImageError(f"remove.bg failed: {rb.status_code} {rb.text[:300]}", upstream=True)

    path = f"bottles/{folder}/{fragrance.pk}-{int(time.time() * 1000)}.png"
    stored = default_storage.save(path, ContentFile(rb.content))
    public_url = default_storage.url(stored)

    fragrance.image_url_transparent = public_url
    fragrance.save(update_fields=["image_url_transparent"])
    logger.info("stored cut-out for fragrance %s at %s", fragrance.pk, stored)
    return public_url


def check_image(url: str) -> dict:
    """HEAD the URL (GET if HEAD is refused) and report whether it serves an image."""
    _require_http(url)
    res = None
    try:
        res = requests.head(url, allow_redirects=True, timeout=settings.OUTBOUND_TIMEOUT,
                            headers={"User-Agent": USER_AGENT, "Accept": "*/*"})
    except requests.RequestException:
        res = None

    if res is None or res.status_code >= 400:
        try:
            res = requests.get(url, allow_redirects=True, stream=True, timeout=settings.OUTBOUND_TIMEOUT,
                               headers={"User-Agent": USER_AGENT, "Accept": "image/*,*/*;q=0.8"})
            res.close()
        except requests.RequestException as exc:
            raise ImageError(str(exc) or "fetch failed") from exc

    content_type = res.headers.get("content-type", "")
    return {
        "ok": res.ok,
        "status": res.status_code,
        "contentType": content_type,
        "contentLength": res.headers.get("content-length"),
        "finalUrl": res.url,
        "isImage": content_type.lower().startswith("image/"),
    }
