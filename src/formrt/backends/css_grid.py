"""
CSS grid stylesheet generator.

Turns the layout engine's renderer-neutral tokens into a stylesheet:

    .form-grid                  display: grid; N columns; gap
    .form-grid > [data-field-id="..."]   column span per field
    @media (max-width: 767px)   single column when responsive

Any renderer may consume the tokens directly instead; this is one
concrete rendering of them.
"""

from typing import List, Sequence

from formrt.layout import FULL_ROW, LayoutEngine
from formrt.model import Field

GAP_SIZES = {
    "small": "0.5rem",
    "medium": "1rem",
    "large": "1.5rem",
}

NARROW_VIEWPORT_MAX_WIDTH = "767px"


def _escape_attr(value: str) -> str:
    """Escape a value for a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _grid_column(token) -> str:
    if token == FULL_ROW:
        return "1 / -1"
    return f"span {token}"


def generate_css(engine: LayoutEngine, fields: Sequence[Field],
                 container_class: str = "form-grid") -> str:
    """
    Generate a stylesheet for the given (visible, ordered) fields.

    Args:
        engine: LayoutEngine configured for the form
        fields: Fields to place, already filtered to those that render
        container_class: Class name of the grid container

    Returns:
        Stylesheet text
    """
    container = engine.container()
    lines: List[str] = []

    lines.append(f".{container_class} {{")
    lines.append("  display: grid;")
    lines.append(f"  grid-template-columns: repeat({container.columns}, minmax(0, 1fr));")
    lines.append(f"  gap: {GAP_SIZES.get(container.gap, GAP_SIZES['medium'])};")
    lines.append("}")

    for position in engine.calculate_field_positions(fields):
        token = engine.span_token(position)
        lines.append(f'.{container_class} > [data-field-id="{_escape_attr(position.id)}"] {{')
        lines.append(f"  grid-column: {_grid_column(token)};")
        lines.append("}")

    if container.single_column_on_narrow:
        lines.append(f"@media (max-width: {NARROW_VIEWPORT_MAX_WIDTH}) {{")
        lines.append(f"  .{container_class} {{")
        lines.append("    grid-template-columns: minmax(0, 1fr);")
        lines.append("  }")
        lines.append(f"  .{container_class} > * {{")
        lines.append("    grid-column: 1 / -1;")
        lines.append("  }")
        lines.append("}")

    return "\n".join(lines) + "\n"


def save_css_file(engine: LayoutEngine, fields: Sequence[Field], filename: str,
                  container_class: str = "form-grid") -> None:
    """
    Generate CSS and save to file.

    Args:
        engine: LayoutEngine configured for the form
        fields: Fields to place
        filename: Output file path (.css extension recommended)
        container_class: Class name of the grid container
    """
    css = generate_css(engine, fields, container_class=container_class)
    with open(filename, 'w') as f:
        f.write(css)


__all__ = ["generate_css", "save_css_file"]
