"""Image reference normalization for oracle requests.

An image reference is either a remote URL (http/https) or an embedded data URL
(``data:image/<subtype>;base64,<payload>``). Remote bytes are downloaded and
re-encoded as a data URL so both branches end in the same parse step.

Usage:
  async with ImageNormalizer() as normalizer:
      part = await normalizer.normalize(report.image)
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import aiohttp
from aiohttp import ClientResponse
from PIL import Image, UnidentifiedImageError

from app.domain.errors import FetchFailure, MalformedPayload
from app.scripts.logging_config import get_logger, log_image_fetch
from config import settings

REMOTE_SCHEMES = ("http://", "https://")
USER_AGENT = "Mozilla/5.0 (compatible; CampusMatchBot/1.0)"
DATA_URL_RE = re.compile(r"^data:(image/[a-z0-9.+-]+);base64,(.+)$", re.DOTALL)

logger = get_logger("oracle")


@dataclass(frozen=True)
class ImagePart:
    media_type: str
    data: str  # base64 text

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def is_remote(image_ref: str) -> bool:
    return image_ref.strip().lower().startswith(REMOTE_SCHEMES)


def parse_data_url(text: str) -> ImagePart:
    """Split ``data:<media-type>;base64,<payload>`` into an ImagePart."""
    m = DATA_URL_RE.match(text.strip())
    if not m:
        raise MalformedPayload(text, "invalid image data format")
    payload = re.sub(r"\s+", "", m.group(2))
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise MalformedPayload(text, "payload is not valid base64")
    return ImagePart(media_type=m.group(1), data=payload)


def _sniff_media_type(data: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(data)) as im:
            return Image.MIME.get(im.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def to_data_url(data: bytes, content_type: str) -> str:
    ctype = (content_type or "").split(";")[0].strip().lower()
    if not ctype.startswith("image/"):
        ctype = _sniff_media_type(data) or ctype or "application/octet-stream"
    return f"data:{ctype};base64,{base64.b64encode(data).decode('ascii')}"


class ImageNormalizer:
    """Converts image references into ImageParts; one aiohttp session per instance."""

    def __init__(
        self,
        timeout_seconds: float = settings.IMAGE_FETCH_TIMEOUT_SECONDS,
        max_concurrency: int = settings.IMAGE_FETCH_CONCURRENCY,
        max_bytes: int = settings.IMAGE_MAX_BYTES,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self.session = session
        self._owns_session = session is None
        self._sem = asyncio.Semaphore(max(1, max_concurrency))

    async def __aenter__(self):
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds, connect=min(10, self.timeout_seconds))
            self.session = aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": USER_AGENT})
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def normalize(self, image_ref: str) -> ImagePart:
        if is_remote(image_ref):
            data, content_type = await self._download(image_ref.strip())
            return parse_data_url(to_data_url(data, content_type))
        return parse_data_url(image_ref)

    async def _read_limited(self, resp: ClientResponse, url: str) -> bytes:
        total = 0
        chunks = []
        async for chunk in resp.content.iter_chunked(64 * 1024):
            total += len(chunk)
            if total > self.max_bytes:
                raise FetchFailure(url, f"image too large ({total} > {self.max_bytes})", status=resp.status)
            chunks.append(chunk)
        return b"".join(chunks)

    async def _download(self, url: str) -> Tuple[bytes, str]:
        if self.session is None:
            raise RuntimeError("ImageNormalizer session not started; use 'async with'")
        async with self._sem:
            try:
                async with self.session.get(url, allow_redirects=True) as resp:
                    if resp.status != 200:
                        raise FetchFailure(url, f"failed to fetch image: http {resp.status}", status=resp.status)
                    content_type = resp.headers.get("content-type", "")
                    data = await self._read_limited(resp, url)
            except FetchFailure as e:
                log_image_fetch(url, False, status=e.status, error=e.reason, logger=logger)
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                log_image_fetch(url, False, error=type(e).__name__, logger=logger)
                raise FetchFailure(url, f"network error: {type(e).__name__}") from e
        if not data:
            log_image_fetch(url, False, status=200, error="empty body", logger=logger)
            raise FetchFailure(url, "empty image body", status=200)
        log_image_fetch(url, True, size_bytes=len(data), status=200, logger=logger)
        return data, content_type
