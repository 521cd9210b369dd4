"""Tests for entity name normalization."""

import pytest

from spain_rd_dashboard.cleaners import (
    extract_region_code,
    normalize,
    remove_tildes,
    strip_region_code,
)


def test_remove_tildes():
    assert remove_tildes("Andalucía") == "Andalucia"
    assert remove_tildes("Castilla-La Mancha") == "Castilla-La Mancha"
    assert remove_tildes("Cataluña") == "Cataluna"


def test_normalize_is_accent_and_case_insensitive():
    assert normalize("Cataluña") == normalize("CATALUNA")
    assert normalize("Región de Murcia") == "region de murcia"
    assert normalize("ARAGÓN") == "aragon"


@pytest.mark.parametrize("empty", [None, ""])
def test_normalize_missing_input(empty):
    assert normalize(empty) == ""


@pytest.mark.parametrize(
    "text",
    ["Cataluña", "Comunidad (ES51) Cataluña", "Illes Balears", "İstanbul", "Ñ", "  Castilla y León "],
)
def test_normalize_is_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once


def test_extract_region_code():
    assert extract_region_code("Comunidad (ES51) Cataluña") == "ES51"
    assert extract_region_code("Barcelona (es511)") == "ES511"
    assert extract_region_code("Cataluña") is None
    assert extract_region_code(None) is None


def test_strip_region_code():
    assert strip_region_code("Comunidad (ES51) Cataluña") == "Comunidad Cataluña"
    assert strip_region_code("Cataluña (ES51)") == "Cataluña"
    assert strip_region_code("Euro area - 19 countries (2015-2022)") == (
        "Euro area - 19 countries (2015-2022)"
    )
    assert strip_region_code(None) == ""
