"""Tests for locale fallback resolution."""

from contentful_graph.core.locales import (
    build_fallback_chain,
    get_localized_field,
    make_localized_getter,
)
from contentful_graph.models.content import Locale

LOCALES = (
    Locale("en-US", is_default=True),
    Locale("de", fallback_code="en-US"),
    Locale("de-AT", fallback_code="de"),
)


def test_value_for_requested_locale_wins() -> None:
    chain = build_fallback_chain(LOCALES)
    assert get_localized_field({"en-US": "Hi", "de": "Hallo"}, "de", chain) == "Hallo"


def test_follows_fallback_chain_transitively() -> None:
    """de-AT -> de -> en-US."""
    chain = build_fallback_chain(LOCALES)
    assert get_localized_field({"en-US": "Hi"}, "de-AT", chain) == "Hi"


def test_falsy_values_are_returned_not_skipped() -> None:
    chain = build_fallback_chain(LOCALES)
    assert get_localized_field({"en-US": "Hi", "de": ""}, "de", chain) == ""
    assert get_localized_field({"en-US": 1, "de": 0}, "de", chain) == 0


def test_returns_none_when_chain_exhausted() -> None:
    chain = build_fallback_chain(LOCALES)
    assert get_localized_field({"fr": "Salut"}, "de", chain) is None


def test_cyclic_chain_terminates() -> None:
    chain = build_fallback_chain(
        (Locale("a", fallback_code="b"), Locale("b", fallback_code="a"))
    )
    assert get_localized_field({"c": 1}, "a", chain) is None


def test_localized_getter_binds_locale() -> None:
    getter = make_localized_getter(LOCALES[1], build_fallback_chain(LOCALES))
    assert getter({"en-US": "Hi"}) == "Hi"
    assert getter({"de": "Hallo", "en-US": "Hi"}) == "Hallo"
