"""
Layout Engine: first-fit, no-reflow grid packer.

Places fields left-to-right, top-to-bottom into a fixed-width grid:

    cursor (row, col) starts at (0, 0)
    for each field, in order:
        span = columns (full) | columns // 2 (half) | columns // 4 (quarter), min 1
        if col + span > columns: next row
        place at (col, row)
        col += span
        if col >= columns: next row

Declaration order is never changed and gaps are never back-filled.

The renderer-facing output is expressed as tokens (span token, gap token,
responsive flag) rather than CSS. formrt.backends.css_grid turns tokens
into a stylesheet.

Memoization lives in a LayoutCache owned by the caller (one per open form
session), never in module state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from formrt.model import Field, FieldPosition, FieldWidth, GridGap, LayoutConfig


FULL_ROW = "full-row"

GAP_TOKENS = {
    GridGap.SM: "small",
    GridGap.MD: "medium",
    GridGap.LG: "large",
}

SpanToken = Union[str, int]
PositionKey = Tuple[Tuple[Tuple[str, str], ...], int]


@dataclass
class LayoutCache:
    """
    Memoized layout results for one form session.

    Keys are derived from content only (ordered (id, width) pairs plus the
    column count), so a cache shared by callers with different inputs
    cannot return a wrong result.
    """

    positions: Dict[PositionKey, Tuple[FieldPosition, ...]] = field(default_factory=dict)
    span_tokens: Dict[Tuple[int, int], SpanToken] = field(default_factory=dict)

    def clear(self) -> None:
        self.positions.clear()
        self.span_tokens.clear()

    def __len__(self) -> int:
        return len(self.positions) + len(self.span_tokens)


@dataclass(frozen=True)
class GridContainer:
    """
    Container-level grid tokens.

    Properties:
        columns: Fixed column count of the grid
        gap: "small" | "medium" | "large"
        single_column_on_narrow: Collapse to one column on narrow viewports
    """

    columns: int
    gap: str
    single_column_on_narrow: bool


def _coerce_width(width) -> FieldWidth:
    if isinstance(width, FieldWidth):
        return width
    try:
        return FieldWidth(width)
    except ValueError:
        return FieldWidth.FULL


class LayoutEngine:
    """
    Computes grid positions for an ordered field list.

    Args:
        config: LayoutConfig of the form
        cache: Optional LayoutCache. Without one, nothing is memoized and
            results are identical.
    """

    def __init__(self, config: LayoutConfig, cache: Optional[LayoutCache] = None):
        self.config = config
        self.cache = cache

    @property
    def columns(self) -> int:
        """Configured column count, clamped to at least 1."""
        columns = self.config.columns
        if not isinstance(columns, int) or columns < 1:
            return 1
        return columns

    def span_for(self, width) -> int:
        """Column span of a field width."""
        width = _coerce_width(width)
        columns = self.columns
        if width == FieldWidth.HALF:
            return max(1, columns // 2)
        if width == FieldWidth.QUARTER:
            return max(1, columns // 4)
        return columns

    def _position_key(self, fields: Sequence[Field]) -> PositionKey:
        return tuple((f.id, _coerce_width(f.width).value) for f in fields), self.columns

    def calculate_field_positions(self, fields: Sequence[Field]) -> List[FieldPosition]:
        """
        One FieldPosition per field, in input order.

        The fields are expected to be already filtered to those that
        should render.
        """
        key = self._position_key(fields)
        if self.cache is not None and key in self.cache.positions:
            return list(self.cache.positions[key])

        columns = self.columns
        positions: List[FieldPosition] = []
        row = 0
        col = 0

        for f in fields:
            span = self.span_for(f.width)

            if col + span > columns:
                row += 1
                col = 0

            positions.append(FieldPosition(id=f.id, x=col, y=row, width=span, height=1))

            col += span
            if col >= columns:
                row += 1
                col = 0

        if self.cache is not None:
            self.cache.positions[key] = tuple(positions)
        return positions

    def span_token(self, position: FieldPosition) -> SpanToken:
        """FULL_ROW when the span covers the grid, else the integer span."""
        key = (position.width, self.columns)
        if self.cache is not None and key in self.cache.span_tokens:
            return self.cache.span_tokens[key]

        token: SpanToken = FULL_ROW if position.width >= self.columns else position.width

        if self.cache is not None:
            self.cache.span_tokens[key] = token
        return token

    def gap_token(self) -> str:
        return GAP_TOKENS.get(self.config.grid_gap, GAP_TOKENS[GridGap.MD])

    def container(self) -> GridContainer:
        """Grid container tokens for the current config."""
        return GridContainer(
            columns=self.columns,
            gap=self.gap_token(),
            single_column_on_narrow=bool(self.config.responsive),
        )

    def update_config(self, **changes) -> None:
        """
        Replace config values, e.g. update_config(columns=2).

        Any config change invalidates every cached result.
        """
        values = {
            "columns": self.config.columns,
            "grid_gap": self.config.grid_gap,
            "responsive": self.config.responsive,
        }
        unknown = set(changes) - set(values)
        if unknown:
            raise TypeError(f"Unknown layout settings: {sorted(unknown)}")
        values.update(changes)
        self.config = LayoutConfig(**values)
        if self.cache is not None:
            self.cache.clear()


def layout_fields(fields: Sequence[Field], config: LayoutConfig,
                  cache: Optional[LayoutCache] = None) -> List[FieldPosition]:
    """Convenience wrapper around LayoutEngine.calculate_field_positions."""
    return LayoutEngine(config, cache=cache).calculate_field_positions(fields)
