import asyncio
import hashlib
import io
import logging
from pathlib import Path

import aiohttp
from PIL import Image, UnidentifiedImageError

from .models import ImageRef, LocalAsset, Url

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (OSError, UnidentifiedImageError, ValueError)


def _usable(img: Image.Image | None) -> bool:
    return img is not None and img.width >= 2 and img.height >= 2


def _decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img.convert("RGBA")


class AssetResolver:
    """Resolves image references to decoded RGBA images.

    ``resolve`` never raises: a reference that cannot be read, fetched or
    decoded yields ``None`` and the next candidate is tried.
    """

    def __init__(
        self,
        asset_dir: Path | str,
        cache_dir: Path | str | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 15,
    ):
        self.asset_dir = Path(asset_dir)
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._session = session
        self._owns_session = False
        self._timeout = timeout
        self._local: dict[str, Image.Image | None] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._owns_session = False

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
        self._owns_session = True
        return self._session

    async def resolve(self, *candidates: ImageRef | None) -> Image.Image | None:
        for ref in candidates:
            if ref is None:
                continue
            if isinstance(ref, LocalAsset):
                img = self._load_local(ref.path)
            else:
                img = await self._fetch_url(ref.url)
            if _usable(img):
                return img
        return None

    def _load_local(self, rel_path: str) -> Image.Image | None:
        if rel_path in self._local:
            return self._local[rel_path]
        path = self.asset_dir / rel_path
        img = None
        try:
            with open(path, "rb") as f:
                img = _decode(f.read())
        except _DECODE_ERRORS as e:
            logger.debug(f"Local asset unavailable: {path}: {e}")
        self._local[rel_path] = img
        return img

    def _cache_path(self, url: str) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / (hashlib.md5(url.encode()).hexdigest() + ".img")

    async def _fetch_url(self, url: str) -> Image.Image | None:
        if not url:
            return None
        cache_path = self._cache_path(url)

        if cache_path is not None and cache_path.exists():
            try:
                return _decode(cache_path.read_bytes())
            except _DECODE_ERRORS as e:
                logger.debug(f"Discarding unreadable cache entry {cache_path.name}: {e}")

        try:
            session = await self._get_session()
            async with session.get(url) as resp:
                if resp.status != 200:
                    logger.debug(f"Image fetch failed: {url}: HTTP {resp.status}")
                    return None
                data = await resp.read()
            img = _decode(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, *_DECODE_ERRORS) as e:
            logger.debug(f"Image fetch failed: {url}: {e}")
            return None

        if cache_path is not None:
            try:
                cache_path.write_bytes(data)
            except OSError as e:
                logger.debug(f"Could not cache {url}: {e}")
        return img


__all__ = ["AssetResolver", "ImageRef", "LocalAsset", "Url"]
