"""Text heuristics for locating controls and table columns on portal pages.

The portal's markup carries no stable ids, so controls and columns are found
by their visible text. Rules are evaluated in the order they are declared and
operate on plain data collected from the DOM, which keeps them testable
against static fixtures.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from src.models import VehicleRecord

_LEADING_LETTERS = re.compile(r"^[^\W\d_]+")
_NON_DIGITS = re.compile(r"\D")
_NEWLINE_RUNS = re.compile(r"\s*\n[\s\n]*")


def fold(text: str | None) -> str:
    """Lowercase, trim and strip accents so "Día" and "dia" compare equal."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def contains_any(text: str | None, markers: Iterable[str]) -> bool:
    folded = fold(text)
    return any(fold(marker) in folded for marker in markers)


@dataclass(frozen=True)
class MatcherRule:
    """A named rule matching clickable candidates by text or icon class.

    Attributes:
        name: Rule name, reported in logs when it fires.
        kind: "text" matches visible text or value, "icon" matches class names.
        keywords: Fragments compared case- and accent-insensitively.
    """

    name: str
    kind: str
    keywords: tuple[str, ...]

    def matches(self, candidate: dict[str, Any]) -> bool:
        if self.kind == "icon":
            classes = fold(candidate.get("icon_classes")).split()
            return any(fold(k) in cls for k in self.keywords for cls in classes)

        text = candidate.get("text") or candidate.get("value") or ""
        return contains_any(text, self.keywords)


def rules_from_config(entries: Sequence[dict[str, Any]]) -> list[MatcherRule]:
    """Build ordered rules from the ``rules`` lists of selectors.yaml."""
    return [
        MatcherRule(
            name=entry["name"],
            kind=entry.get("kind", "text"),
            keywords=tuple(entry.get("keywords", [])),
        )
        for entry in entries
    ]


def select_candidate(
    candidates: Sequence[dict[str, Any]], rules: Sequence[MatcherRule]
) -> tuple[int, str] | None:
    """Pick the first visible candidate matched by the highest-priority rule.

    Returns:
        ``(candidate_index, rule_name)`` or None when no rule matches.
    """
    for rule in rules:
        for candidate in candidates:
            if not candidate.get("visible", True):
                continue
            if rule.matches(candidate):
                return candidate["index"], rule.name
    return None


@dataclass
class TableRow:
    """Cell texts of one ``<tr>``: all cells, and ``<td>`` cells only."""

    cells: list[str] = field(default_factory=list)
    data: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "TableRow":
        return cls(
            cells=[str(c).strip() for c in raw.get("cells", [])],
            data=[str(c).strip() for c in raw.get("data", [])],
        )


def normalize_identifier(raw: str) -> str:
    """Strip the alphabetic prefix, then leading zeros: "N015" -> "15"."""
    without_prefix = _LEADING_LETTERS.sub("", raw.strip())
    return without_prefix.strip().lstrip("0")


def digits_only(raw: str) -> str:
    return _NON_DIGITS.sub("", raw)


def find_header(
    rows: Sequence[TableRow],
    identifier_markers: Sequence[str],
    total_markers: Sequence[str],
) -> tuple[int, int] | None:
    """Locate the identifier and day-total columns from the first header row.

    Returns:
        ``(col_identifier, col_total)`` or None if no row carries both markers.
    """
    for row in rows:
        col_identifier = col_total = -1
        for index, cell in enumerate(row.cells):
            if col_identifier < 0 and contains_any(cell, identifier_markers):
                col_identifier = index
            elif col_total < 0 and contains_any(cell, total_markers):
                col_total = index
        if col_identifier >= 0 and col_total >= 0:
            return col_identifier, col_total
    return None


def parse_rows(
    rows: Sequence[TableRow],
    col_identifier: int,
    col_total: int,
    max_identifier_length: int,
) -> list[VehicleRecord]:
    """Turn data rows into vehicle records, first occurrence of an id wins."""
    records: dict[str, VehicleRecord] = {}
    needed = max(col_identifier, col_total)

    for row in rows:
        if len(row.data) <= needed:
            continue

        raw_identifier = row.data[col_identifier]
        if len(raw_identifier) >= max_identifier_length:
            continue

        identifier = normalize_identifier(raw_identifier)
        pasajeros = digits_only(row.data[col_total])
        if not identifier or not pasajeros or not pasajeros.isdecimal():
            continue

        if identifier not in records:
            records[identifier] = VehicleRecord(identifier=identifier, pasajeros=pasajeros)

    return list(records.values())


def collapse_snippet(text: str | None, length: int) -> str:
    """Flatten newline runs to " | " and cut to ``length`` characters."""
    if not text:
        return ""
    return _NEWLINE_RUNS.sub(" | ", text.strip())[:length]
