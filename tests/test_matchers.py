"""Tests for the text heuristics used on portal pages."""

import pytest

from src.browser.matchers import (
    MatcherRule,
    TableRow,
    collapse_snippet,
    digits_only,
    find_header,
    fold,
    normalize_identifier,
    parse_rows,
    rules_from_config,
    select_candidate,
)
from tests.conftest import candidate

IDENTIFIER_MARKERS = ["interno"]
TOTAL_MARKERS = ["total dia"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("N015", "15"),
        ("A007", "7"),
        ("0123", "123"),
        (" N015 ", "15"),
        ("N 015", "15"),
        ("000", ""),
    ],
)
def test_normalize_identifier(raw, expected):
    """Test prefix and leading-zero stripping."""
    assert normalize_identifier(raw) == expected


def test_digits_only():
    assert digits_only("42 pax") == "42"
    assert digits_only("1.204") == "1204"
    assert digits_only("n/a") == ""


def test_fold_ignores_case_and_accents():
    assert fold("  Total   DÍA ") == "total dia"
    assert fold(None) == ""


def test_find_header_fixes_columns():
    """Test header detection on the first row carrying both markers."""
    rows = [
        TableRow(cells=["Reporte diario"]),
        TableRow(cells=["Nombre", "Número Interno", "Total Día"]),
        TableRow(cells=["Total Día", "Interno"]),
    ]

    assert find_header(rows, IDENTIFIER_MARKERS, TOTAL_MARKERS) == (1, 2)


def test_find_header_handles_reordered_columns():
    rows = [TableRow(cells=["TOTAL DIA", "Placa", "No. interno"])]

    assert find_header(rows, IDENTIFIER_MARKERS, TOTAL_MARKERS) == (2, 0)


def test_find_header_missing():
    rows = [TableRow(cells=["Nombre", "Placa"]), TableRow(cells=["Total Día"])]

    assert find_header(rows, IDENTIFIER_MARKERS, TOTAL_MARKERS) is None


def test_parse_rows_header_and_data():
    """Test extraction of a single data row beneath its header."""
    rows = [
        TableRow(cells=["Nombre", "Número Interno", "Total Día"], data=[]),
        TableRow(cells=["x", "N015", "42 pax"], data=["x", "N015", "42 pax"]),
    ]

    records = parse_rows(rows, 1, 2, max_identifier_length=15)

    assert [r.model_dump() for r in records] == [{"identifier": "15", "pasajeros": "42"}]


def test_parse_rows_deduplicates_first_wins():
    """Test that identical normalized identifiers keep the first row."""
    rows = [
        TableRow(data=["N015", "42"]),
        TableRow(data=["A015", "99"]),
        TableRow(data=["N016", "7"]),
    ]

    records = parse_rows(rows, 0, 1, max_identifier_length=15)

    assert [(r.identifier, r.pasajeros) for r in records] == [("15", "42"), ("16", "7")]


def test_parse_rows_spaced_prefix_collapses_with_plain_prefix():
    rows = [
        TableRow(data=["N 015", "42"]),
        TableRow(data=["N015", "99"]),
    ]

    records = parse_rows(rows, 0, 1, max_identifier_length=15)

    assert [(r.identifier, r.pasajeros) for r in records] == [("15", "42")]


def test_parse_rows_rejects_footer_and_short_rows():
    rows = [
        TableRow(data=["N001"]),
        TableRow(data=["TOTAL GENERAL FLOTA", "1200"]),
        TableRow(data=["N002", "sin datos"]),
        TableRow(data=["N000", "5"]),
        TableRow(data=["N003", "12"]),
    ]

    records = parse_rows(rows, 0, 1, max_identifier_length=15)

    assert [(r.identifier, r.pasajeros) for r in records] == [("3", "12")]


def test_select_candidate_respects_rule_priority():
    """Test that an earlier rule wins over an earlier candidate."""
    rules = [
        MatcherRule(name="action_text", kind="text", keywords=("generar",)),
        MatcherRule(name="search_icon", kind="icon", keywords=("fa-search",)),
    ]
    candidates = [
        candidate(0, icon_classes="btn fa fa-search"),
        candidate(1, text="Generar reporte"),
    ]

    assert select_candidate(candidates, rules) == (1, "action_text")
    assert select_candidate(candidates[:1], rules) == (0, "search_icon")


def test_select_candidate_skips_hidden_controls():
    rules = [MatcherRule(name="submit", kind="text", keywords=("ingresar",))]
    candidates = [candidate(0, text="Ingresar", visible=False), candidate(1, text="INGRESAR")]

    assert select_candidate(candidates, rules) == (1, "submit")
    assert select_candidate([], rules) is None


def test_text_rule_falls_back_to_value():
    rule = MatcherRule(name="submit", kind="text", keywords=("ingresar",))

    assert rule.matches({"text": "", "value": "Ingresar"})


def test_rules_from_config_keeps_order(selectors):
    rules = rules_from_config(selectors["refresh"]["rules"])

    assert [r.name for r in rules] == ["action_text", "search_icon"]
    assert rules[1].kind == "icon"


def test_collapse_snippet():
    assert collapse_snippet("Inicio\n\n  Reportes\nSalir", 300) == "Inicio | Reportes | Salir"
    assert collapse_snippet("abcdef", 3) == "abc"
    assert collapse_snippet(None, 10) == ""
