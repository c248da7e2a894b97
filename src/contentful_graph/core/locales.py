"""Locale fallback chains and per-locale field lookup."""

from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from contentful_graph.models.content import Locale


def build_fallback_chain(locales: Iterable[Locale]) -> dict[str, str | None]:
    """Map each locale code to the code it falls back to (None if none)."""
    return {locale.code: locale.fallback_code for locale in locales}


def get_localized_field(
    field: dict[str, Any],
    locale_code: str,
    fallback_chain: dict[str, str | None],
) -> Any | None:
    """Return the value of ``field`` for ``locale_code``, following fallbacks.

    Returns None when neither the locale nor any locale on its fallback chain
    has a value. A cyclic chain stops at the first revisited locale.
    """
    seen: set[str] = set()
    code: str | None = locale_code
    while code is not None:
        if code in field:
            return field[code]
        seen.add(code)
        code = fallback_chain.get(code)
        if code in seen:
            logger.debug("Locale fallback cycle at {!r}, giving up", code)
            return None
    return None


def make_localized_getter(
    locale: Locale, fallback_chain: dict[str, str | None]
) -> Callable[[dict[str, Any]], Any | None]:
    """Bind ``get_localized_field`` to one locale."""

    def getter(field: dict[str, Any]) -> Any | None:
        return get_localized_field(field, locale.code, fallback_chain)

    return getter
