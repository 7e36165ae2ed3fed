"""
image_loader.py - Fetch the images referenced by a document.

Local paths are resolved against the markdown file's directory (percent
escapes decoded); http(s) URLs are fetched with httpx. Only PNG and JPEG
are supported, and the bytes must decode with Pillow. A failed image is
logged and left out; the converter puts a placeholder in its place.
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Optional
from urllib.parse import unquote

import httpx
from PIL import Image

import config
from image_header import read_image_dimensions, sniff_mime_type
from models import ImageInfo, LoadedImage

logger = logging.getLogger(__name__)


def is_remote_url(href: str) -> bool:
    return href.startswith("http://") or href.startswith("https://")


def mime_type_for_path(path: str) -> Optional[str]:
    ext = os.path.splitext(path)[1].lower()
    return config.SUPPORTED_IMAGE_EXTENSIONS.get(ext)


def _decoded_image(info: ImageInfo, data: bytes, mime_type: str) -> Optional[LoadedImage]:
    """LoadedImage for ``data``, or None if Pillow cannot decode it."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("Image %s could not be decoded: %s", info.href, e)
        return None
    return LoadedImage(info.id, data, mime_type, read_image_dimensions(data, mime_type))


def load_local_image(info: ImageInfo, base_path: str) -> Optional[LoadedImage]:
    href = unquote(info.href)
    path = href if os.path.isabs(href) else os.path.join(base_path, href)

    mime_type = mime_type_for_path(path)
    if mime_type is None:
        logger.warning("Unsupported image format: %s", info.href)
        return None
    if not os.path.isfile(path):
        logger.warning("Image file not found: %s", path)
        return None

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.warning("Failed to read local image %s: %s", path, e)
        return None

    return _decoded_image(info, data, mime_type)


def load_remote_image(info: ImageInfo, client: httpx.Client) -> Optional[LoadedImage]:
    try:
        resp = client.get(info.href, headers={"User-Agent": config.REMOTE_IMAGE_USER_AGENT})
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch remote image %s: %s", info.href, e)
        return None

    if resp.status_code >= 400:
        logger.warning("Failed to fetch image: %s (%d)", info.href, resp.status_code)
        return None

    data = resp.content
    content_type = resp.headers.get("content-type", "")
    mime_type = content_type.split(";", 1)[0].strip().lower()
    if mime_type not in ("image/png", "image/jpeg"):
        sniffed = sniff_mime_type(data)
        if sniffed is None:
            logger.warning("Unsupported image type from URL: %s (%s)", info.href, content_type)
            return None
        mime_type = sniffed

    return _decoded_image(info, data, mime_type)


def load_images(images: list, base_path: str, client: Optional[httpx.Client] = None) -> dict:
    """Load every referenced image; returns image id -> LoadedImage for the ones that worked."""
    if not images:
        return {}

    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, timeout=httpx.Timeout(config.REMOTE_IMAGE_TIMEOUT))

    def load(info: ImageInfo):
        if is_remote_url(info.href):
            return load_remote_image(info, client)
        return load_local_image(info, base_path)

    try:
        workers = min(config.IMAGE_LOAD_WORKERS, len(images))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(load, images))
    finally:
        if own_client:
            client.close()

    loaded = {img.id: img for img in results if img is not None}
    for img in loaded.values():
        if img.dimensions is None:
            logger.warning("Could not read dimensions of %s; height correction will ignore it", img.id)
    return loaded
