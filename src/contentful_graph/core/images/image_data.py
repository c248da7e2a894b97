"""Layout-aware image data: per-format source sets plus a placeholder."""

import dataclasses
from typing import Any

from loguru import logger

from contentful_graph.core.images.derivatives import (
    generate_image_source,
    get_basic_image_props,
    is_image,
    js_round,
)
from contentful_graph.core.images.placeholders import PlaceholderResolver
from contentful_graph.models.image import ImageData, ImageOptions, ImageSource
from contentful_graph.models.node import Node

LAYOUTS = ("fixed", "constrained", "full_width")
PLACEHOLDERS = ("dominant_color", "blurred", "traced_svg", "none")

DEFAULT_WIDTH = 800

# Image API fit modes, by the CSS object-fit they correspond to.
FIT_MAP = {
    "pad": "contain",
    "fill": "cover",
    "scale": "fill",
    "crop": "cover",
    "thumb": "cover",
}

_FIXED_DENSITIES = (1, 2)
_CONSTRAINED_DENSITIES = (0.25, 0.5, 1, 2)


def _source_format(content_type: str) -> str:
    fmt = content_type.split("/")[-1]
    return "jpg" if fmt == "jpeg" else fmt


def _resolve_formats(requested: tuple[str, ...], source_format: str) -> list[str]:
    formats: list[str] = []
    for fmt in requested:
        fmt = fmt or source_format
        if fmt not in formats:
            formats.append(fmt)
    return formats


def _target_width(options: ImageOptions, aspect_ratio: float, source_width: int) -> int:
    if options.width:
        width = options.width
    elif options.height:
        width = js_round(options.height * aspect_ratio)
    else:
        width = DEFAULT_WIDTH
    return min(width, source_width)


def _candidate_widths(layout: str, width: int, source_width: int, options: ImageOptions) -> list[int]:
    if layout == "full_width":
        widths = [bp for bp in options.breakpoints if bp <= source_width]
        # Breakpoints were cut off, so the source itself is the widest candidate.
        if len(widths) < len(options.breakpoints) and source_width not in widths:
            widths.append(source_width)
    else:
        densities = _FIXED_DENSITIES if layout == "fixed" else _CONSTRAINED_DENSITIES
        widths = [js_round(width * d) for d in densities]
        widths = [w for w in widths if w <= source_width] or [width]
    return sorted(set(widths))


def _sizes(layout: str, width: int) -> str:
    if layout == "fixed":
        return f"{width}px"
    if layout == "constrained":
        return f"(min-width: {width}px) {width}px, 100vw"
    return "100vw"


def _src_set(layout: str, sources: list[ImageSource], width: int) -> str:
    if layout == "fixed":
        return ",".join(f"{s.src} {s.width / width:g}x" for s in sources)
    return ",".join(f"{s.src} {s.width}w" for s in sources)


def generate_image_data(asset: Node, options: ImageOptions) -> ImageData | None:
    """Build image data without a placeholder.

    Raises:
        ValueError: on an unknown layout.
    """
    if options.layout not in LAYOUTS:
        msg = f"Unknown layout {options.layout!r}, expected one of {LAYOUTS!r}"
        raise ValueError(msg)
    if not is_image(asset):
        return None

    props = get_basic_image_props(asset, options)
    aspect_ratio = props.aspect_ratio
    width = _target_width(options, aspect_ratio, props.width)
    height = js_round(width / aspect_ratio)
    widths = _candidate_widths(options.layout, width, props.width, options)
    fit = FIT_MAP.get(options.resizing_behavior or "", "cover")
    sizes = _sizes(options.layout, width)

    fallback: dict[str, str] | None = None
    sources: list[dict[str, str]] = []
    source_format = _source_format(props.content_type)
    for fmt in _resolve_formats(options.formats, source_format):
        rendered: list[ImageSource] = []
        for w in widths:
            source = generate_image_source(props.base_url, w, js_round(w / aspect_ratio), fmt, fit, options)
            if source is not None:
                rendered.append(source)
        if not rendered:
            continue
        src_set = _src_set(options.layout, rendered, width)
        if fallback is None and (fmt != "webp" or fmt == source_format):
            fallback = {"src": rendered[-1].src, "srcSet": src_set, "sizes": sizes}
        else:
            sources.append({"srcSet": src_set, "type": f"image/{fmt}", "sizes": sizes})

    images: dict[str, Any] = {"sources": sources}
    if fallback is not None:
        images["fallback"] = fallback
    else:
        logger.warning("No fallback format could be rendered for {}", props.base_url)

    return ImageData(
        layout=options.layout,
        width=width,
        height=height,
        images=images,
        background_color=options.background_color,
    )


async def resolve_image_data(
    asset: Node,
    options: ImageOptions,
    placeholders: PlaceholderResolver,
) -> ImageData | None:
    """Build image data and attach the placeholder ``options.placeholder`` asks for."""
    if options.placeholder not in PLACEHOLDERS:
        msg = f"Unknown placeholder {options.placeholder!r}, expected one of {PLACEHOLDERS!r}"
        raise ValueError(msg)

    data = generate_image_data(asset, options)
    if data is None:
        return None

    if options.placeholder == "dominant_color":
        color = await placeholders.get_dominant_color(asset, options)
        return dataclasses.replace(data, background_color=color or data.background_color)
    if options.placeholder == "blurred":
        uri = await placeholders.get_base64_image(get_basic_image_props(asset, options).base_url)
        return dataclasses.replace(data, placeholder={"fallback": uri} if uri else None)
    if options.placeholder == "traced_svg":
        svg = await placeholders.get_traced_svg(asset, options)
        return dataclasses.replace(data, placeholder={"fallback": svg} if svg else None)
    return data

