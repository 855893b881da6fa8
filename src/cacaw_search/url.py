"""URL handling utilities."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def extract_domain(url: str) -> str:
    """Extract domain name from URL.

    Args:
        url: The URL to extract the domain from.

    Returns:
        The domain name (without 'www.' prefix), or "Unknown" if extraction fails.
    """
    try:
        domain = urlparse(url).netloc
    except ValueError:
        return "Unknown"
    if not domain:
        logger.warning(f"Could not get domain from url {url}")
        return "Unknown"
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def guess_format(url: str, default: str = "jpeg") -> str:
    """Guess an image format from the URL's file extension.

    Query strings are ignored; ``jpg`` is reported as ``jpeg``.
    """
    path = urlparse(url).path
    if "." not in path.rsplit("/", 1)[-1]:
        return default
    ext = path.rsplit(".", 1)[-1].lower()
    if ext == "jpg":
        return "jpeg"
    if ext in {"jpeg", "png", "gif", "webp", "svg", "bmp", "tiff"}:
        return ext
    return default
