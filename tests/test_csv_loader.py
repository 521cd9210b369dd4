"""Tests for dataset fetching and CSV parsing."""

import pytest
import requests

from spain_rd_dashboard.loaders import (
    DatasetFetchError,
    detect_delimiter,
    fetch_text,
    get_http_session,
    load_dataset,
    load_datasets,
    read_csv_text,
)


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.content = text.encode("utf-8")


class FakeSession:
    """Minimal stand-in for requests.Session.get."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Año;Comunidad;% PIB I+D", ";"),
        ("TIME_PERIOD|geo|OBS_VALUE", "|"),
        ("Year,Country,Sector,%GDP", ","),
        ("single_column", ","),
    ],
)
def test_detect_delimiter(header, expected):
    assert detect_delimiter(header + "\n1;2|3,4") == expected


def test_detect_delimiter_prefers_semicolon_when_commas_in_header():
    assert detect_delimiter("Comunidad, nombre;Año;Valor") == ";"


def test_read_csv_text_keeps_raw_strings():
    text = "Año;Comunidad Limpio;% PIB I+D\n2020; Cataluña ;1,52\n2021;Madrid;:\n"
    rows = read_csv_text(text)

    assert rows == [
        {"Año": "2020", "Comunidad Limpio": "Cataluña", "% PIB I+D": "1,52"},
        {"Año": "2021", "Comunidad Limpio": "Madrid", "% PIB I+D": ":"},
    ]


def test_read_csv_text_quoted_comma_decimals():
    text = 'Year,Country,Sector,%GDP\n2020,Spain,All Sectors,"1,41"\n'
    rows = read_csv_text(text)
    assert rows[0]["%GDP"] == "1,41"


def test_read_csv_text_empty_cells_are_empty_strings():
    rows = read_csv_text("geo,TIME_PERIOD,OBS_VALUE\nES,2020,\n", ",")
    assert rows[0]["OBS_VALUE"] == ""


def test_read_csv_text_blank_input():
    assert read_csv_text("   \n") == []


def test_fetch_text_local_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a;b\n1;2\n", encoding="utf-8")
    assert fetch_text(str(path)) == "a;b\n1;2\n"


def test_fetch_text_missing_file(tmp_path):
    with pytest.raises(DatasetFetchError) as excinfo:
        fetch_text(str(tmp_path / "missing.csv"))
    assert excinfo.value.reason == "file not found"


def test_fetch_text_http_success():
    session = FakeSession(FakeResponse(200, "Year,Country\n2020,Spain\n"))
    text = fetch_text("https://example.org/gdp.csv", session=session)
    assert text.startswith("Year,Country")
    assert session.requested == ["https://example.org/gdp.csv"]


def test_fetch_text_http_error_status():
    session = FakeSession(FakeResponse(404))
    with pytest.raises(DatasetFetchError) as excinfo:
        fetch_text("https://example.org/missing.csv", session=session)
    assert "404" in excinfo.value.reason


def test_fetch_text_network_error():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    with pytest.raises(DatasetFetchError):
        fetch_text("https://example.org/gdp.csv", session=session)


def test_get_http_session_mounts_retries():
    session = get_http_session(total=5, backoff=1.0)
    adapter = session.get_adapter("https://example.org")
    assert adapter.max_retries.total == 5
    assert 503 in adapter.max_retries.status_forcelist


def test_load_dataset_from_data_root(settings):
    folder = settings.paths.data_root / "GDP_data"
    folder.mkdir(parents=True)
    (folder / "gdp_consolidado.csv").write_text(
        'Year,Country,Sector,%GDP\n2020,Spain,All Sectors,"1,41"\n', encoding="utf-8"
    )

    rows = load_dataset(settings.dataset("gdp_consolidado"), settings)
    assert rows == [{"Year": "2020", "Country": "Spain", "Sector": "All Sectors", "%GDP": "1,41"}]


def test_load_datasets_reports_failures(settings):
    folder = settings.paths.data_root / "GDP_data"
    folder.mkdir(parents=True)
    (folder / "gdp_consolidado.csv").write_text("Year,Country\n2020,Spain\n", encoding="utf-8")

    errors = {}
    results = load_datasets(["gdp_consolidado", "rd_communities"], settings, errors=errors)

    assert list(results) == ["gdp_consolidado"]
    assert errors == {"rd_communities": "file not found"}


@pytest.mark.parametrize(
    "source, expected",
    [
        ("GDP_data/gdp_consolidado.csv", "https://example.org/data/GDP_data/gdp_consolidado.csv"),
        ("./GDP_data/gdp_consolidado.csv", "https://example.org/data/GDP_data/gdp_consolidado.csv"),
        (".hidden/gdp.csv", "https://example.org/data/.hidden/gdp.csv"),
        ("/mirror/gdp.csv", "https://example.org/mirror/gdp.csv"),
    ],
)
def test_resolve_source_against_base_url(settings, source, expected):
    settings.http.base_url = "https://example.org/data/"
    dataset = settings.dataset("gdp_consolidado")
    dataset.source = source

    assert settings.resolve_source(dataset) == expected


def test_load_dataset_from_base_url(settings):
    settings.http.base_url = "https://example.org/data"
    session = FakeSession(FakeResponse(200, 'Year,Country,Sector,%GDP\n2020,Spain,All Sectors,"1,41"\n'))

    rows = load_dataset(settings.dataset("gdp_consolidado"), settings, session=session)

    assert session.requested == ["https://example.org/data/GDP_data/gdp_consolidado.csv"]
    assert rows[0]["%GDP"] == "1,41"
