"""Tests for the time-series joiner."""

import logging

import pytest

from spain_rd_dashboard.models import SeriesPoint
from spain_rd_dashboard.transformers import SeriesSpec, join, match_point, rows_to_frame, year_range, years_of

COMMUNITY = [
    SeriesPoint(2020, "ES51", "total", 1.52),
    SeriesPoint(2020, "ES51", "business", 0.9),
    SeriesPoint(2020, "ES30", "total", 1.71),
]

NATIONAL = [
    SeriesPoint(2021, "ES", "total", 1.43),
    SeriesPoint(2019, "ES", "total", 1.25),
    SeriesPoint(2020, "ES", "total", 1.41),
    SeriesPoint(2020, "EU27_2020", "total", 2.29),
]


def test_missing_year_is_absent():
    rows = join([2020, 2021], [SeriesSpec("community", COMMUNITY, match_point("ES51", "total"))])

    assert [(row.year, row.values) for row in rows] == [
        (2020, {"community": 1.52}),
        (2021, {"community": None}),
    ]


def test_rows_are_ascending_with_every_key():
    specs = [
        SeriesSpec("country", NATIONAL, match_point("ES", "total")),
        SeriesSpec("eu", NATIONAL, match_point("EU27_2020", "total")),
        SeriesSpec("community", COMMUNITY, match_point("ES51", "total")),
    ]

    rows = join([2021, 2019, 2020, 2020], specs)

    assert [row.year for row in rows] == [2019, 2020, 2021]
    for row in rows:
        assert set(row.values) == {"country", "eu", "community"}
    assert rows[1].values == {"country": 1.41, "eu": 2.29, "community": 1.52}
    assert rows[0].get("eu") is None


def test_first_match_wins_and_duplicates_are_logged(caplog):
    points = [SeriesPoint(2020, "ES", "total", 1.0), SeriesPoint(2020, "ES", "total", 2.0)]

    with caplog.at_level(logging.WARNING, logger="spain_rd_dashboard.transformers.joiner"):
        rows = join([2020], [SeriesSpec("country", points, match_point("ES"))])

    assert rows[0].get("country") == 1.0
    assert "first one used" in caplog.text


def test_match_point_constraints():
    point = SeriesPoint(2020, "ES", "total", 1.0, unit="NR")
    assert match_point()(point)
    assert match_point(entity_code="ES", unit="NR")(point)
    assert not match_point(unit="P_MHAB")(point)
    assert not match_point(sector_code="business")(point)


def test_duplicate_series_keys_are_rejected():
    spec = SeriesSpec("country", NATIONAL, match_point("ES"))
    with pytest.raises(ValueError):
        join([2020], [spec, spec])


def test_no_years_and_no_specs():
    assert join([], [SeriesSpec("country", NATIONAL, match_point("ES"))]) == []
    rows = join([2020], [])
    assert rows[0].year == 2020 and rows[0].values == {}


def test_years_of_and_year_range():
    specs = [SeriesSpec("country", NATIONAL, match_point("ES", "total"))]
    assert years_of(specs) == [2019, 2020, 2021]
    assert year_range(2019, 2021) == [2019, 2020, 2021]


def test_rows_to_frame_keeps_none():
    rows = join([2020, 2021], [SeriesSpec("community", COMMUNITY, match_point("ES51", "total"))])
    frame = rows_to_frame(rows)

    assert list(frame.index) == [2020, 2021]
    assert frame.loc[2020, "community"] == 1.52
    assert frame.loc[2021, "community"] is None
