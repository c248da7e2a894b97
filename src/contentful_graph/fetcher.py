"""Download remote image files into an on-disk cache."""

import asyncio
import hashlib
from pathlib import Path

import requests
from loguru import logger

from contentful_graph.config import resolve_cache_directory

REQUEST_TIMEOUT = 60


class AssetFetcher:
    """Fetches files over HTTP, keeping one cached copy per URL."""

    def __init__(self, cache_dir: Path | None = None, *, session: requests.Session | None = None) -> None:
        self.cache_dir = cache_dir or resolve_cache_directory()
        self.sess = session or requests.Session()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Asset fetcher ready: cache_dir {!r}", str(self.cache_dir))

    def cache_path(self, url: str, *, name: str | None = None, ext: str = "") -> Path:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
        file_name = f"{name}-{digest[:12]}{ext}" if name else f"{digest}{ext}"
        return self.cache_dir / file_name

    def download(self, url: str, *, name: str | None = None, ext: str = "") -> Path:
        """Return the cached file for ``url``, downloading it first if needed."""
        path = self.cache_path(url, name=name, ext=ext)
        if path.exists():
            logger.debug("Filled from cache: {!r}", str(path))
            return path

        logger.debug("Fetching {!r}", url)
        try:
            r = self.sess.get(url, timeout=REQUEST_TIMEOUT)
            r.raise_for_status()
        except requests.RequestException as e:
            msg = f"Failed to fetch {url!r}: {e}"
            raise RuntimeError(msg) from e

        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(r.content)
        tmp.replace(path)
        return path

    async def fetch_asset(self, url: str, *, name: str | None = None, ext: str = "") -> Path:
        return await asyncio.to_thread(self.download, url, name=name, ext=ext)
