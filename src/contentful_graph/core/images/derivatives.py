"""Responsive image descriptors computed from asset nodes.

Everything here is pure: the same asset and options always give the same
URLs. Placeholders, which need network access, live in ``placeholders``.
"""

import dataclasses
import math
from typing import Any
from urllib.parse import urlencode

from loguru import logger

from contentful_graph.config import IMAGE_MAX_SIZE
from contentful_graph.models.image import (
    BasicImageProps,
    FixedImage,
    FluidImage,
    ImageOptions,
    ImageSource,
    ResizedImage,
)
from contentful_graph.models.node import Node

# Formats the image API can convert to.
VALID_IMAGE_FORMATS = frozenset({"jpg", "png", "webp", "gif"})

MIME_TYPE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/png": ".png",
    "image/webp": ".webp",
}

DEFAULT_FIXED_WIDTH = 400
DEFAULT_FLUID_MAX_WIDTH = 800

_FIXED_DENSITIES = (1, 1.5, 2, 3)
_FIXED_LABELS = ("1x", "1.5x", "2x", "3x")
_FLUID_FACTORS = (0.25, 0.5, 1, 1.5, 2, 3)


def js_round(value: float) -> int:
    """Round half up, so 2.5 -> 3 (``round`` would give 2)."""
    return math.floor(value + 0.5)


def _file(asset: Node) -> dict[str, Any]:
    return asset.fields.get("file") or {}


def is_image(asset: Node) -> bool:
    return _file(asset).get("contentType") in MIME_TYPE_EXTENSIONS


def get_basic_image_props(asset: Node, options: ImageOptions) -> BasicImageProps:
    """Source size of ``asset``; explicit width and height set the aspect ratio."""
    file = _file(asset)
    details = file["details"]["image"]
    if options.width and options.height:
        aspect_ratio = options.width / options.height
    else:
        aspect_ratio = details["width"] / details["height"]
    return BasicImageProps(
        base_url=file["url"],
        content_type=file["contentType"],
        aspect_ratio=aspect_ratio,
        width=details["width"],
        height=details["height"],
    )


def create_url(
    img_url: str,
    *,
    width: float | None = None,
    height: float | None = None,
    to_format: str | None = None,
    jpeg_progressive: bool | None = None,
    quality: int | None = None,
    resizing_behavior: str | None = None,
    crop_focus: str | None = None,
    background: str | None = None,
) -> str:
    """Build an image API URL. Empty values are left out of the query."""
    params = {
        "w": width or None,
        "h": height or None,
        "fl": "progressive" if to_format == "jpg" and jpeg_progressive else None,
        "q": quality or None,
        "fm": to_format or None,
        "fit": resizing_behavior or None,
        "f": crop_focus or None,
        "bg": background or None,
    }
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"https:{img_url}?{query}"


def checked_format(to_format: str) -> str:
    """Return ``to_format`` if the API supports it, else warn and return ``""``."""
    if not to_format or to_format in VALID_IMAGE_FORMATS:
        return to_format
    logger.warning(
        "Invalid image format {!r}. Supported types are {}",
        to_format,
        ", ".join(sorted(VALID_IMAGE_FORMATS)),
    )
    return ""


def url_params(options: ImageOptions) -> dict[str, Any]:
    """The options ``create_url`` understands, besides width and height."""
    return {
        "to_format": checked_format(options.to_format),
        "jpeg_progressive": options.jpeg_progressive,
        "quality": options.quality,
        "resizing_behavior": options.resizing_behavior,
        "crop_focus": options.crop_focus,
        "background": options.background,
    }


def clamp_dimensions(width: float, height: float) -> tuple[int, int]:
    """Scale down so neither side exceeds the API limit, keeping the aspect ratio."""
    if width > IMAGE_MAX_SIZE:
        height = math.floor(height / width * IMAGE_MAX_SIZE)
        width = IMAGE_MAX_SIZE
    if height > IMAGE_MAX_SIZE:
        width = math.floor(width / height * IMAGE_MAX_SIZE)
        height = IMAGE_MAX_SIZE
    return int(width), int(height)


def generate_image_source(
    filename: str,
    width: float,
    height: float,
    to_format: str,
    fit: str | None = None,
    options: ImageOptions | None = None,
) -> ImageSource | None:
    """Build one rendition. Returns None (and warns) for unsupported formats.

    ``fit`` is accepted for callers that think in fit terms, but the
    request uses ``options.resizing_behavior``.
    """
    options = options or ImageOptions()
    width, height = clamp_dimensions(width, height)

    if to_format not in VALID_IMAGE_FORMATS:
        logger.warning(
            "Invalid image format {!r}. Supported types are {}",
            to_format,
            ", ".join(sorted(VALID_IMAGE_FORMATS)),
        )
        return None

    background = options.background_color.replace("#", "rgb:") if options.background_color else None
    src = create_url(
        filename,
        width=width,
        height=height,
        to_format=to_format,
        resizing_behavior=options.resizing_behavior,
        background=background,
        quality=options.quality,
        jpeg_progressive=options.jpeg_progressive,
        crop_focus=options.crop_focus,
    )
    return ImageSource(width=width, height=height, format=to_format, src=src)


def _fits(size: int, aspect_ratio: float, source_width: int) -> bool:
    return (
        size <= IMAGE_MAX_SIZE
        and js_round(size / aspect_ratio) <= IMAGE_MAX_SIZE
        and size <= source_width
    )


def _wants_webp_variant(props: BasicImageProps, options: ImageOptions) -> bool:
    return props.content_type != "image/webp" and options.to_format != "webp"


def resolve_fixed(asset: Node, options: ImageOptions) -> FixedImage | None:
    """Fixed-size image with 1x, 1.5x, 2x and 3x candidates.

    Candidates wider than the source or the API limit are dropped.
    """
    if not is_image(asset):
        return None

    props = get_basic_image_props(asset, options)
    aspect_ratio = props.aspect_ratio
    cropping = options.width is not None and options.height is not None

    width = options.width
    if width is None:
        width = DEFAULT_FIXED_WIDTH if options.height is None else js_round(options.height * aspect_ratio)
    if cropping:
        aspect_ratio = width / options.height  # type: ignore[operator]

    params = url_params(options)
    if cropping and not params["resizing_behavior"]:
        params["resizing_behavior"] = "fill"

    sizes = sorted(
        size
        for size in (js_round(width * d) for d in _FIXED_DENSITIES)
        if _fits(size, aspect_ratio, props.width)
    )
    src_set = ",\n".join(
        f"{create_url(props.base_url, **params, width=size, height=js_round(size / aspect_ratio))} {label}"
        for size, label in zip(sizes, _FIXED_LABELS, strict=False)
    )

    if options.height:
        picked_height: float = options.height
        picked_width: float = options.height * aspect_ratio
    else:
        picked_height = width / aspect_ratio
        picked_width = width

    src_webp = src_set_webp = None
    if _wants_webp_variant(props, options):
        webp = resolve_fixed(asset, dataclasses.replace(options, to_format="webp"))
        if webp is not None:
            src_webp, src_set_webp = webp.src, webp.src_set

    return FixedImage(
        aspect_ratio=aspect_ratio,
        base_url=props.base_url,
        width=js_round(picked_width),
        height=js_round(picked_height),
        src=create_url(props.base_url, **params, width=width, height=options.height),
        src_set=src_set,
        src_webp=src_webp,
        src_set_webp=src_set_webp,
    )


def resolve_fluid(asset: Node, options: ImageOptions) -> FluidImage | None:
    """Fluid image with width candidates from a quarter to three times the max width.

    The source width is added when missing so small images are still served
    at full size.
    """
    if not is_image(asset):
        return None

    props = get_basic_image_props(asset, options)
    aspect_ratio = props.aspect_ratio
    cropping = options.max_width is not None and options.max_height is not None

    max_width = options.max_width
    if max_width is None:
        if options.max_height is None:
            max_width = DEFAULT_FLUID_MAX_WIDTH
        else:
            max_width = js_round(options.max_height * aspect_ratio)
    if cropping:
        aspect_ratio = max_width / options.max_height  # type: ignore[operator]

    params = url_params(options)
    if cropping and not params["resizing_behavior"]:
        params["resizing_behavior"] = "fill"

    sizes_hint = options.sizes or f"(max-width: {max_width}px) 100vw, {max_width}px"

    candidates = [
        size
        for size in (js_round(max_width * f) for f in _FLUID_FACTORS)
        if _fits(size, aspect_ratio, props.width)
    ]
    if (
        props.width not in candidates
        and props.width < IMAGE_MAX_SIZE
        and js_round(props.width / aspect_ratio) < IMAGE_MAX_SIZE
    ):
        candidates.append(props.width)

    src_set = ",\n".join(
        f"{create_url(props.base_url, **params, width=size, height=js_round(size / aspect_ratio))} {size}w"
        for size in sorted(set(candidates))
    )

    src_webp = src_set_webp = None
    if _wants_webp_variant(props, options):
        webp = resolve_fluid(asset, dataclasses.replace(options, to_format="webp"))
        if webp is not None:
            src_webp, src_set_webp = webp.src, webp.src_set

    return FluidImage(
        aspect_ratio=aspect_ratio,
        base_url=props.base_url,
        src=create_url(props.base_url, **params, width=max_width, height=options.max_height),
        src_set=src_set,
        sizes=sizes_hint,
        src_webp=src_webp,
        src_set_webp=src_set_webp,
    )


def resolve_resize(asset: Node, options: ImageOptions) -> ResizedImage | None:
    """A single resized rendition, no candidate set."""
    if not is_image(asset):
        return None

    props = get_basic_image_props(asset, options)
    cropping = options.width is not None and options.height is not None

    width: float | None = options.width
    height: float | None = options.height
    if width is None and height is None:
        width = DEFAULT_FIXED_WIDTH

    params = url_params(options)
    if params["jpeg_progressive"] is None:
        params["jpeg_progressive"] = True
    if cropping and not params["resizing_behavior"]:
        params["resizing_behavior"] = "fill"

    src = create_url(props.base_url, **params, width=width, height=height)
    if width is None:
        width = height * props.aspect_ratio  # type: ignore[operator]
    if height is None:
        height = width / props.aspect_ratio

    return ResizedImage(
        src=src,
        width=js_round(width),
        height=js_round(height),
        aspect_ratio=props.aspect_ratio,
        base_url=props.base_url,
    )
