# services/api/core/photos.py
"""
Fetching book photos over HTTP: size probing at registration time and
image loading at render time.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, Iterable, Optional, Tuple

import httpx
from cachetools import TTLCache
from PIL import Image

logger = logging.getLogger(__name__)

# url -> (width, height); photos rarely change behind a URL
_dimension_cache: TTLCache = TTLCache(maxsize=512, ttl=600)


async def fetch_image_bytes(url: str, timeout: float = 20.0) -> bytes:
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        r = await client.get(url)
        r.raise_for_status()
        return r.content


def image_size(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


async def probe_dimensions(url: str, timeout: float = 20.0) -> Optional[Tuple[int, int]]:
    """
    Width/height of the image at `url`, or None if it can't be read.
    """
    cached = _dimension_cache.get(url)
    if cached is not None:
        return cached

    try:
        data = await fetch_image_bytes(url, timeout=timeout)
        size = image_size(data)
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.warning(f"Photo probe failed for {url}: {e}")
        return None

    _dimension_cache[url] = size
    return size


async def load_images(urls: Iterable[str], timeout: float = 20.0) -> Dict[str, Image.Image]:
    """
    Download and decode every URL it can; failures are logged and left out
    so the renderer can draw a placeholder instead.
    """
    out: Dict[str, Image.Image] = {}
    unique = [u for u in dict.fromkeys(urls) if u]
    if not unique:
        return out

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        for url in unique:
            try:
                r = await client.get(url)
                r.raise_for_status()
                img = Image.open(io.BytesIO(r.content))
                img.load()
                out[url] = img.convert("RGB")
            except (httpx.HTTPError, OSError, ValueError) as e:
                logger.warning(f"Could not load photo {url}: {e}")

    logger.info(f"Loaded {len(out)}/{len(unique)} photos for rendering")
    return out
