"""
Tests for the CSS grid backend.
"""

from formrt.backends import generate_css, save_css_file
from formrt.layout import LayoutEngine
from formrt.model import Field, FieldWidth, GridGap, LayoutConfig


def fields():
    return [
        Field(id="a", width=FieldWidth.HALF),
        Field(id="b", width=FieldWidth.HALF),
        Field(id="c", width=FieldWidth.FULL),
    ]


class TestGenerateCss:
    """Test stylesheet output."""

    def test_container_rule(self):
        css = generate_css(LayoutEngine(LayoutConfig(columns=4, grid_gap=GridGap.LG)), fields())
        assert ".form-grid {" in css
        assert "grid-template-columns: repeat(4, minmax(0, 1fr));" in css
        assert "gap: 1.5rem;" in css

    def test_field_spans(self):
        css = generate_css(LayoutEngine(LayoutConfig(columns=4)), fields())
        assert '[data-field-id="a"] {\n  grid-column: span 2;' in css
        assert '[data-field-id="c"] {\n  grid-column: 1 / -1;' in css

    def test_responsive_override(self):
        responsive = generate_css(LayoutEngine(LayoutConfig(responsive=True)), fields())
        fixed = generate_css(LayoutEngine(LayoutConfig(responsive=False)), fields())
        assert "@media (max-width: 767px)" in responsive
        assert "@media" not in fixed

    def test_custom_class_and_escaping(self):
        css = generate_css(LayoutEngine(LayoutConfig()), [Field(id='we"ird')], container_class="grid")
        assert ".grid {" in css
        assert '[data-field-id="we\\"ird"]' in css

    def test_save_css_file(self, tmp_path):
        target = tmp_path / "form.css"
        engine = LayoutEngine(LayoutConfig())
        save_css_file(engine, fields(), str(target))
        assert target.read_text() == generate_css(engine, fields())
