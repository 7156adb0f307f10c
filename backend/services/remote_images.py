"""
Fetch order images hosted elsewhere (e.g. storefront CDN links).
"""
import logging
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests

from domain.errors import MissingInputError, RemoteFetchError
from settings import settings

logger = logging.getLogger(__name__)
_session = requests.Session()

DEFAULT_CONTENT_TYPE = "image/png"


def fetch_remote_image(url: Optional[str], timeout: Optional[float] = None) -> Tuple[str, bytes]:
    """
    Download an image by URL.

    Returns:
        (content_type, body)

    Raises:
        MissingInputError: If no URL was given
        RemoteFetchError: On invalid URLs, transport errors or non-2xx replies
    """
    if not url or not url.strip():
        raise MissingInputError("No image URL provided")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RemoteFetchError(f"Unsupported image URL: {url}")
    try:
        resp = _session.get(url.strip(), timeout=timeout or settings.HTTP_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("[fetch-image] %s failed: %s", parsed.netloc, exc)
        raise RemoteFetchError(f"Failed to fetch image: {exc}") from exc
    if not resp.ok:
        raise RemoteFetchError(f"Failed to fetch image: {resp.status_code} {resp.reason}")
    content_type = (resp.headers.get("content-type") or DEFAULT_CONTENT_TYPE).split(";")[0].strip()
    return content_type, resp.content
