# badgesmith/infrastructure/io/image_loader.py
import asyncio
import base64
import binascii
import io
import logging

import aiohttp
from PIL import Image, UnidentifiedImageError

from badgesmith.config.settings import settings
from badgesmith.domain.errors import ImageLoadError
from badgesmith.infrastructure.io.fetch import fetch_with_retry, is_url

logger = logging.getLogger(__name__)


class ImageLoader:
    """Loads background/logo sources and inlines them as data URIs for rasterization."""

    def __init__(self, timeout: float = settings.IMAGE_FETCH_TIMEOUT, retries: int = 1):
        self.timeout = timeout
        self.retries = retries

    async def load_bytes(self, src: str, session: aiohttp.ClientSession) -> bytes:
        if not src:
            raise ImageLoadError(src, "empty source")
        if src.startswith("data:"):
            try:
                _, encoded = src.split(",", 1)
                return base64.b64decode(encoded + "===")
            except (ValueError, binascii.Error) as e:
                raise ImageLoadError(src, f"bad data URI ({e})") from e
        try:
            return await fetch_with_retry(src, self.timeout, self.retries, session)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            kind = "download" if is_url(src) else "read"
            raise ImageLoadError(src, f"{kind} failed ({type(e).__name__})") from e

    @staticmethod
    def to_data_uri(src: str, data: bytes) -> str:
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ImageLoadError(src, f"not a decodable image ({type(e).__name__})") from e
        mime = Image.MIME.get(fmt, "image/png")
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

    async def inline(self, src: str, session: aiohttp.ClientSession) -> str:
        data = await self.load_bytes(src, session)
        logger.debug(f"Loaded image '{src[:70]}' ({len(data)} bytes).")
        return self.to_data_uri(src, data)
