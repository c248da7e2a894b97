"""Image request options and the derivative descriptors built from them."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImageOptions:
    """Caller options for an image derivative. Unset values are None."""

    width: int | None = None
    height: int | None = None
    max_width: int | None = None
    max_height: int | None = None
    quality: int | None = 50
    to_format: str = ""
    jpeg_progressive: bool | None = None
    resizing_behavior: str | None = None
    crop_focus: str | None = None
    background: str | None = None
    sizes: str | None = None
    # Used by resolve_image_data only.
    layout: str = "constrained"
    placeholder: str = "dominant_color"
    formats: tuple[str, ...] = ("", "webp")
    background_color: str | None = None
    breakpoints: tuple[int, ...] = (750, 1080, 1366, 1920)


@dataclass(frozen=True)
class BasicImageProps:
    """Source dimensions of an asset, plus the aspect ratio to render at."""

    base_url: str
    content_type: str
    aspect_ratio: float
    width: int
    height: int


@dataclass(frozen=True)
class ImageSource:
    """One concrete rendition of an image."""

    width: int
    height: int
    format: str
    src: str


@dataclass(frozen=True)
class FixedImage:
    aspect_ratio: float
    base_url: str
    width: int
    height: int
    src: str
    src_set: str
    src_webp: str | None = None
    src_set_webp: str | None = None
    base64: str | None = None
    traced_svg: str | None = None


@dataclass(frozen=True)
class FluidImage:
    aspect_ratio: float
    base_url: str
    src: str
    src_set: str
    sizes: str
    src_webp: str | None = None
    src_set_webp: str | None = None
    base64: str | None = None
    traced_svg: str | None = None


@dataclass(frozen=True)
class ResizedImage:
    src: str
    width: int
    height: int
    aspect_ratio: float
    base_url: str
    base64: str | None = None
    traced_svg: str | None = None


@dataclass(frozen=True)
class ImageData:
    """Layout-aware image data with per-format sources and a placeholder."""

    layout: str
    width: int
    height: int
    images: dict[str, Any] = field(default_factory=dict)
    background_color: str | None = None
    placeholder: dict[str, str] | None = None
