"""Low-quality placeholders: base64 previews, traced SVGs and dominant colours."""

import asyncio
import base64
import dataclasses
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from loguru import logger

from contentful_graph.config import IMAGE_API_HOST, NEUTRAL_FALLBACK_COLOR
from contentful_graph.core.images.derivatives import (
    MIME_TYPE_EXTENSIONS,
    create_url,
    url_params,
)
from contentful_graph.models.image import FixedImage, FluidImage, ImageOptions, ResizedImage
from contentful_graph.models.node import Node
from contentful_graph.protocols import AssetFetcherProtocol, RasterProcessorProtocol

DOMINANT_COLOR_WIDTH = 256

_T = TypeVar("_T", FixedImage, FluidImage, ResizedImage)


@dataclass(frozen=True)
class _Pending:
    task: "asyncio.Task[str]"


@dataclass(frozen=True)
class _Resolved:
    value: str


class PlaceholderCache:
    """Per-key memo for async placeholder computations.

    Each key is either pending or resolved, never both. Concurrent callers
    for a pending key share one computation. A failed computation is
    forgotten, so the next caller retries, and the error reaches every
    caller that was waiting on it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Pending | _Resolved] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get_resolved(self, key: str) -> str | None:
        entry = self._entries.get(key)
        return entry.value if isinstance(entry, _Resolved) else None

    def is_pending(self, key: str) -> bool:
        return isinstance(self._entries.get(key), _Pending)

    def clear(self) -> None:
        self._entries.clear()

    async def get(self, key: str, compute: Callable[[], Awaitable[str]]) -> str:
        entry = self._entries.get(key)
        if isinstance(entry, _Resolved):
            return entry.value
        if entry is None:
            entry = _Pending(asyncio.ensure_future(self._run(key, compute)))
            self._entries[key] = entry
        else:
            logger.debug("Joining pending placeholder request for {}", key)
        # Shielded so one cancelled caller doesn't cancel the others.
        return await asyncio.shield(entry.task)

    async def _run(self, key: str, compute: Callable[[], Awaitable[str]]) -> str:
        try:
            value = await compute()
        except BaseException:
            self._entries.pop(key, None)
            raise
        self._entries[key] = _Resolved(value)
        return value


# Shared by every resolver in the process.
BASE64_CACHE = PlaceholderCache()


def _file_name_stem(file_name: str, ext: str) -> str:
    name = Path(file_name).name
    return name.removesuffix(ext) if ext else name


class PlaceholderResolver:
    """Computes placeholders through an asset fetcher and an optional raster processor."""

    def __init__(
        self,
        fetcher: AssetFetcherProtocol,
        raster: RasterProcessorProtocol | None = None,
        cache: PlaceholderCache | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.raster = raster
        self.cache = BASE64_CACHE if cache is None else cache

    async def get_base64_image(self, base_url: str) -> str | None:
        """Return a tiny JPEG preview as a data URI, or None for non image-API URLs."""
        if IMAGE_API_HOST not in base_url:
            return None

        request_url = create_url(base_url, width=20, to_format="jpg")

        async def compute() -> str:
            path = await self.fetcher.fetch_asset(request_url)
            data = await asyncio.to_thread(path.read_bytes)
            return "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")

        return await self.cache.get(request_url, compute)

    async def get_traced_svg(self, asset: Node, options: ImageOptions) -> str | None:
        """Return a traced SVG of the asset.

        None for non-images, and with an error logged when there is no raster
        processor or tracing fails.
        """
        file = asset.fields.get("file") or {}
        content_type = file.get("contentType") or ""
        if not content_type.startswith("image/"):
            return None
        if self.raster is None:
            logger.error("Traced SVG placeholders need a raster processor; none is configured")
            return None

        ext = MIME_TYPE_EXTENSIONS.get(content_type, "")
        url = create_url(
            file["url"], **url_params(options), width=options.width, height=options.height
        )
        trace_options = {
            k: v for k, v in dataclasses.asdict(options).items() if v is not None and v != ""
        }
        try:
            path = await self.fetcher.fetch_asset(
                url, name=_file_name_stem(file.get("fileName", ""), ext), ext=ext
            )
            return await self.raster.trace_svg(path, trace_options)
        except Exception:
            logger.exception("Could not trace SVG for {}", url)
            return None

    async def get_dominant_color(self, asset: Node, options: ImageOptions) -> str | None:
        """Return the asset's dominant colour.

        Falls back to a neutral colour, with an error logged, when there is
        no raster processor or processing fails.
        """
        if self.raster is None:
            logger.error("Dominant colour placeholders need a raster processor; none is configured")
            return NEUTRAL_FALLBACK_COLOR

        file = asset.fields.get("file") or {}
        content_type = file.get("contentType") or ""
        if not content_type.startswith("image/"):
            return None

        ext = MIME_TYPE_EXTENSIONS.get(content_type, "")
        url = create_url(
            file["url"],
            **url_params(options),
            width=options.width or DOMINANT_COLOR_WIDTH,
            height=options.height,
        )
        try:
            path = await self.fetcher.fetch_asset(
                url, name=_file_name_stem(file.get("fileName", ""), ext), ext=ext
            )
            return await self.raster.get_dominant_color(path)
        except Exception:
            logger.exception("Could not compute dominant colour for {}", url)
            return NEUTRAL_FALLBACK_COLOR

    async def with_placeholders(
        self,
        image: _T,
        *,
        asset: Node | None = None,
        options: ImageOptions | None = None,
        base64: bool = False,
        traced_svg: bool = False,
    ) -> _T:
        """Return ``image`` with the requested placeholder fields filled in."""
        changes: dict[str, str | None] = {}
        if base64:
            changes["base64"] = await self.get_base64_image(image.base_url)
        if traced_svg and asset is not None:
            changes["traced_svg"] = await self.get_traced_svg(asset, options or ImageOptions())
        return dataclasses.replace(image, **changes) if changes else image
