"""
Form Analyzer: authoring-time diagnostics for a form definition.

This module provides read-only analysis of Form objects:
    - Field inventory
    - Conditional logic references (unknown, forward, cyclic)
    - Formula validation for calculated fields
    - Recall token checks for every template
    - Duplicate refs and URL parameter config problems

IMPORTANT: Nothing here runs at render time and nothing here modifies the
form. Runtime evaluation never raises; this is where problems surface.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from formrt.calculations import validate_expression
from formrt.logic import referenced_field_ids
from formrt.model import FieldType, Form
from formrt.recall import validate_recall_tokens
from formrt.url_params import validate_url_param_config


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class FormReport:
    """Diagnostics report for a form."""

    form_id: str
    total_fields: int = 0
    fields_with_logic: int = 0
    calculated_fields: int = 0
    required_fields: int = 0

    # Conditional logic: (field id, referenced id)
    unknown_condition_refs: List[Tuple[str, str]] = field(default_factory=list)
    forward_condition_refs: List[Tuple[str, str]] = field(default_factory=list)
    has_logic_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    # Calculations: field id -> error message
    calculation_errors: Dict[str, str] = field(default_factory=dict)

    # Recall: template location -> warnings
    recall_warnings: Dict[str, List[str]] = field(default_factory=dict)

    duplicate_refs: Set[str] = field(default_factory=set)
    url_param_errors: List[str] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def is_clean(self) -> bool:
        return not self.warnings


def analyze_form(form: Form) -> FormReport:
    """
    Perform authoring-time analysis of a Form.

    Returns a FormReport; every finding is also listed in report.warnings.
    """
    report = FormReport(form_id=form.id)
    fields = form.ordered_fields()
    by_id = {f.id: f for f in fields}
    position = {f.id: i for i, f in enumerate(fields)}

    report.total_fields = len(fields)
    report.required_fields = sum(1 for f in fields if f.required)

    # =========================================================================
    # 1. CONDITIONAL LOGIC
    # =========================================================================

    depends_on: Dict[str, List[str]] = defaultdict(list)

    for f in fields:
        refs = referenced_field_ids(f.conditional_logic)
        if f.conditional_logic is not None:
            report.fields_with_logic += 1
        for ref in refs:
            if ref not in by_id:
                report.unknown_condition_refs.append((f.id, ref))
                report.add_warning(f'Field "{f.label or f.id}" has a condition on unknown field "{ref}"')
                continue
            depends_on[f.id].append(ref)
            if position[ref] >= position[f.id]:
                report.forward_condition_refs.append((f.id, ref))
                report.add_warning(
                    f'Field "{f.label or f.id}" has a condition on "{by_id[ref].label or ref}" '
                    f'which appears later in form'
                )

    visited: Set[str] = set()
    for field_id in list(depends_on.keys()):
        if field_id not in visited:
            cycle = _find_cycles_dfs(depends_on, field_id, visited, set(), [])
            if cycle:
                report.has_logic_cycles = True
                report.cycle_example = cycle
                report.add_warning(f"Visibility cycle detected: {' -> '.join(cycle)}")
                break

    # =========================================================================
    # 2. CALCULATIONS
    # =========================================================================

    for f in fields:
        if f.type != FieldType.CALCULATED:
            continue
        report.calculated_fields += 1
        if f.calculations is None:
            report.calculation_errors[f.id] = "No formula configured"
        else:
            result = validate_expression(f.calculations.expression, fields)
            if not result.is_valid:
                report.calculation_errors[f.id] = result.error
        if f.id in report.calculation_errors:
            report.add_warning(f'Calculated field "{f.label or f.id}": {report.calculation_errors[f.id]}')

    # =========================================================================
    # 3. RECALL TOKENS
    # =========================================================================

    param_names = [p.name for p in form.url_params_config if p.name]
    templates = [
        ("title", form.title, None),
        ("description", form.description, None),
        ("thank_you_message", form.thank_you_message, None),
        ("redirect_url", form.redirect_url, None),
    ]
    for f in fields:
        for attr in ("label", "description", "placeholder"):
            templates.append((f"{f.id}.{attr}", getattr(f, attr), f.order_index))

    for location, text, order_index in templates:
        result = validate_recall_tokens(text, fields, param_names, current_order_index=order_index)
        if not result.is_valid:
            report.recall_warnings[location] = result.warnings
            for warning in result.warnings:
                report.add_warning(f"{location}: {warning}")

    # =========================================================================
    # 4. REFS AND URL PARAMETERS
    # =========================================================================

    ref_counts: Dict[str, int] = defaultdict(int)
    for f in fields:
        if f.ref:
            ref_counts[f.ref] += 1
    report.duplicate_refs = {ref for ref, count in ref_counts.items() if count > 1}
    if report.duplicate_refs:
        report.add_warning(f"Duplicate refs: {', '.join(sorted(report.duplicate_refs))}")

    params = validate_url_param_config(form.url_params_config)
    report.url_param_errors = params.errors
    for error in params.errors:
        report.add_warning(error)

    return report
