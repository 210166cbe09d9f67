"""
Unit and grid conversion between dialect width tokens and percentages.

Canonical widths are percentage strings ("50%", "33.33%"). Snapping dialects
keep a fixed table of (percentage, token) pairs; converting a percentage back
picks the entry with the smallest absolute difference, first entry winning
ties, so any legal percentage lands on some valid native token even when two
grid systems are not isomorphic (12 divisions into 6).

Continuous dialects (Elementor, Bricks) take any value and only round.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import UnknownDialectError

DEFAULT_PERCENTAGE = 100.0

FRACTION_PATTERN = re.compile(r"^\s*(\d+)\s*[/_]\s*(\d+)\s*$")
NUMBER_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*%?\s*$")


@dataclass
class GridTable:
    """Ordered percentage -> token table for a snapping grid."""
    entries: list[tuple[float, str]]
    aliases: dict[str, float] = field(default_factory=dict)  # parse-only tokens

    def percentage_of(self, token: str) -> float | None:
        token = token.strip()
        for percentage, native in self.entries:
            if native == token:
                return percentage
        return self.aliases.get(token)

    def tokens(self) -> list[str]:
        return [token for _, token in self.entries]

    def nearest(self, percentage: float) -> str:
        return nearest_token(percentage, self.entries)


@dataclass
class ContinuousGrid:
    """A grid that stores the percentage itself (rounded)."""
    integer: bool = False  # Elementor stores an int, Bricks a percentage string

    def token_for(self, percentage: float) -> str:
        if self.integer:
            return str(int(round(percentage)))
        return format_percentage(percentage)


def _fraction_entries(pairs: list[str], separator: str) -> list[tuple[float, str]]:
    entries = []
    for pair in pairs:
        numerator, denominator = (int(part) for part in pair.split("/"))
        entries.append((_truncate(numerator * 100 / denominator), pair.replace("/", separator)))
    return entries


def _truncate(value: float) -> float:
    # 2/3 -> 66.66, matching how page builders label their presets
    return int(value * 100) / 100


_SIXTHS = ["1/1", "1/2", "1/3", "2/3", "1/4", "3/4", "1/5", "2/5", "3/5", "4/5", "1/6", "5/6"]

GRIDS: dict[str, GridTable | ContinuousGrid] = {
    "wpbakery": GridTable(_fraction_entries(_SIXTHS + ["1/12", "5/12", "7/12", "11/12"], "/")),
    "divi": GridTable(
        [(100.0, "4_4")] + [entry for entry in _fraction_entries(_SIXTHS, "_") if entry[1] != "1_1"],
        aliases={"1_1": 100.0},
    ),
    "avada": GridTable(_fraction_entries(_SIXTHS, "_")),
    "bootstrap": GridTable([(_truncate(n * 100 / 12), str(n)) for n in range(12, 0, -1)]),
    "elementor": ContinuousGrid(integer=True),
    "bricks": ContinuousGrid(integer=False),
}


def _grid(dialect: str) -> GridTable | ContinuousGrid:
    grid = GRIDS.get(dialect.lower())
    if grid is None:
        raise UnknownDialectError(dialect, list(GRIDS))
    return grid


def format_percentage(value: float) -> str:
    """50.0 -> "50%", 33.333 -> "33.33%"."""
    rounded = round(value, 2)
    if rounded == int(rounded):
        return f"{int(rounded)}%"
    return f"{rounded:.2f}".rstrip("0").rstrip(".") + "%"


def parse_percentage(value: object) -> float | None:
    """
    Read any width-like value as a float percentage.

    Accepts numbers, "50", "50%", fractions "1/2" and underscore fractions
    "1_2". Returns None when the value is not width-like.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value)
    match = FRACTION_PATTERN.match(text)
    if match:
        numerator, denominator = int(match.group(1)), int(match.group(2))
        if denominator == 0:
            return None
        return numerator * 100 / denominator
    match = NUMBER_PATTERN.match(text)
    if match:
        return float(match.group(1))
    return None


def nearest_token(percentage: float, entries: list[tuple[float, str]]) -> str:
    """Token with minimal |difference|; first occurrence wins ties."""
    best_token = entries[0][1]
    best_diff = abs(entries[0][0] - percentage)
    for table_percentage, token in entries[1:]:
        diff = abs(table_percentage - percentage)
        if diff < best_diff:
            best_diff = diff
            best_token = token
    return best_token


def width_to_percentage(token: object, dialect: str) -> str:
    """Dialect width token -> canonical percentage string ("100%" if unreadable)."""
    grid = _grid(dialect)
    if isinstance(grid, GridTable) and isinstance(token, str):
        known = grid.percentage_of(token)
        if known is not None:
            return format_percentage(known)
    percentage = parse_percentage(token)
    if percentage is None:
        return format_percentage(DEFAULT_PERCENTAGE)
    return format_percentage(percentage)


def percentage_to_dialect_token(percentage: object, dialect: str) -> str:
    """Canonical percentage (or any width-like value) -> nearest native token."""
    grid = _grid(dialect)
    value = parse_percentage(percentage)
    if value is None:
        value = DEFAULT_PERCENTAGE
    if isinstance(grid, ContinuousGrid):
        return grid.token_for(value)
    return grid.nearest(value)


def native_tokens(dialect: str) -> list[str]:
    """Tokens in a snapping dialect's table (empty for continuous grids)."""
    grid = _grid(dialect)
    if isinstance(grid, GridTable):
        return grid.tokens()
    return []
