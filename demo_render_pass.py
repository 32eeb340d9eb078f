"""
Demo: Evaluate the example order form, analyze it and export its stylesheet.
"""

import logging

from formrt.analyzer import analyze_form
from formrt.backends import save_css_file
from formrt.examples import build_example_order_form
from formrt.layout import LayoutCache, LayoutEngine
from formrt.runtime import evaluate_form
from formrt.serialization import form_to_yaml
from formrt.url_params import resolve_url_params


def print_render_pass(rendered):
    """Pretty-print a RenderPass."""
    print()
    print("=" * 70)
    print(f"RENDER PASS: {rendered.form.id}")
    print("=" * 70)
    print()

    print("📐 LAYOUT")
    print(f"  Columns:               {rendered.container.columns}")
    print(f"  Gap:                   {rendered.container.gap}")
    for position in rendered.positions:
        token = rendered.span_tokens[position.id]
        print(f"    {position.id:<10} row {position.y}  col {position.x}  span {token}")
    print()

    print("🧮 CALCULATIONS")
    for field_id, result in rendered.calculations.items():
        print(f"  {field_id}: {result.display}")
    print()

    print("💬 TEXT")
    for key, text in rendered.resolved_texts().items():
        if text:
            print(f"  {key:<22} {text}")
    print()

    if rendered.missing_required:
        print("⚠️  MISSING REQUIRED")
        for f in rendered.missing_required:
            print(f"  - {f.label or f.id}")
        print()


def print_report(report):
    """Pretty-print a FormReport."""
    print("=" * 70)
    print(f"FORM ANALYSIS REPORT: {report.form_id}")
    print("=" * 70)
    print(f"  Total Fields:          {report.total_fields}")
    print(f"  Fields with Logic:     {report.fields_with_logic}")
    print(f"  Calculated Fields:     {report.calculated_fields}")
    print(f"  Required Fields:       {report.required_fields}")
    print(f"  Has Logic Cycles:      {'YES' if report.has_logic_cycles else 'NO'}")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Form looks clean!")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    form = build_example_order_form(columns=4)
    params = resolve_url_params(form.url_params_config, query={"utm_source": "newsletter"})

    cache = LayoutCache()
    answers = {"name": "Ana", "qty": 3, "price": "10", "tax": 2, "delivery": "ship"}
    print_render_pass(evaluate_form(form, answers, url_params=params, cache=cache))

    print_report(analyze_form(form))

    rendered = evaluate_form(form, answers, url_params=params, cache=cache)
    save_css_file(LayoutEngine(form.layout), rendered.visible_fields, "example_form.css")
    print("✅ Stylesheet exported to example_form.css")

    with open("example_form.yaml", "w") as f:
        f.write(form_to_yaml(form))
    print("✅ Form exported to example_form.yaml")
