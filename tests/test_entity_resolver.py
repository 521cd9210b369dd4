"""Tests for lookup tables and entity resolution."""

import pytest

from spain_rd_dashboard.models import COUNTRY, REGION
from spain_rd_dashboard.resolvers import EntityResolver, LookupTables, load_lookup_tables


def test_lookup_tables_load(tables):
    assert tables.version
    assert len(tables.entities(REGION)) == 19
    assert tables.by_code("ESP", COUNTRY).code == "ES"
    assert tables.by_code("es51", REGION).name("en") == "Catalonia"
    assert tables.by_code("ES51", REGION).parent == "ES"


def test_region_codes_are_unique(tables):
    codes = [entity.code for entity in tables.entities(REGION)]
    assert len(codes) == len(set(codes))
    short = [code for entity in tables.entities(REGION) for code in entity.codes]
    assert len(short) == len(set(short))


def test_missing_lookup_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_lookup_tables(tmp_path / "missing.yaml")


def test_resolve_parenthetical_code(resolver):
    entity = resolver.resolve("Comunidad (ES51) Cataluña")

    assert entity is not None
    assert entity.code == "ES51"
    assert entity.local_names == {"es": "Cataluña", "en": "Catalonia"}


@pytest.mark.parametrize("name", ["Cataluña", "Catalunya", "CATALUNA", "Catalonia", "CAT", "ES51"])
def test_resolve_spellings_of_catalonia(resolver, name):
    assert resolver.resolve(name, REGION).code == "ES51"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("ESP", "ES"),
        ("es", "ES"),
        ("España", "ES"),
        ("Spain", "ES"),
        ("GR", "EL"),
        ("GB", "UK"),
        ("United Kingdom", "UK"),
        ("EU27_2020", "EU27_2020"),
        ("European Union - 27 countries (from 2020)", "EU27_2020"),
        ("EA19", "EA20"),
    ],
)
def test_resolve_country_codes_and_names(resolver, raw, expected):
    assert resolver.resolve(raw, COUNTRY).code == expected


def test_madrid_override_applies_before_tables(resolver):
    assert resolver.resolve("Comunidad de Madrid", REGION).code == "ES30"
    assert resolver.resolve("Madrid, Comunidad de", REGION).code == "ES30"
    assert resolver.resolve("MADRID (ES30)").code == "ES30"


def test_province_code_rolls_up_to_community(resolver):
    assert resolver.resolve("ES511", REGION).code == "ES51"
    assert resolver.resolve("ES300", REGION).code == "ES30"
    assert resolver.resolve("ES707", REGION).code == "ES70"


def test_whole_word_containment(resolver):
    assert resolver.resolve("Comunidad Autónoma de Cataluña", REGION).code == "ES51"
    assert resolver.resolve("Principado de Asturias (Total)", REGION).code == "ES12"


def test_generic_words_do_not_match(resolver):
    assert resolver.resolve("Comunidad", REGION) is None
    assert resolver.resolve("Total", REGION) is None


@pytest.mark.parametrize("raw", [None, "", "   ", "Atlantis", "XX99"])
def test_unknown_input_is_not_found(resolver, raw):
    assert resolver.resolve(raw) is None


def test_resolution_is_deterministic(resolver):
    first = resolver.resolve("Illes Balears", REGION)
    second = resolver.resolve("Illes Balears", REGION)
    assert first is second
    assert first.code == "ES53"


def test_supranational_allowlist(resolver):
    for code in ["EU27_2020", "EA19", "EA20", "EU", "EA", "EU28"]:
        assert resolver.is_supranational(code)
    assert resolver.is_supranational(resolver.resolve("Zona Euro"))
    assert not resolver.is_supranational("ES")
    assert not resolver.is_supranational(None)


def test_display_name_and_flag(resolver):
    assert resolver.display_name("Catalunya", "en") == "Catalonia"
    assert resolver.display_name("ES13", "es") == "Cantabria"
    assert resolver.display_name("Atlantis", "en") == "Atlantis"
    assert resolver.flag_for("DE").endswith("de.svg")
    assert resolver.flag_for("Atlantis") == ""


def test_first_declaration_wins_on_shared_alias():
    tables = LookupTables.from_dict(
        {
            "countries": [],
            "regions": [
                {"code": "XA1", "es": "Primera", "en": "First", "aliases": ["Ribera"]},
                {"code": "XA2", "es": "Segunda", "en": "Second", "aliases": ["Ribera"]},
            ],
        }
    )
    assert EntityResolver(tables).resolve("Ribera", REGION).code == "XA1"


def test_hinted_kind_is_searched_first():
    tables = LookupTables.from_dict(
        {
            "countries": [{"code": "GE", "es": "Georgia", "en": "Georgia"}],
            "regions": [{"code": "US13", "es": "Georgia (EE. UU.)", "en": "Georgia", "aliases": ["Georgia"]}],
        }
    )
    resolver = EntityResolver(tables)
    assert resolver.resolve("Georgia", COUNTRY).code == "GE"
    assert resolver.resolve("Georgia", REGION).code == "US13"
