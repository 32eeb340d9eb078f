"""
Recall Resolver: text personalization tokens.

Token shape (whitespace inside the braces is tolerated):

    {{ field : full_name }}   answer of the field whose ref is full_name
    {{ var   : total }}       computed value of the calculated field with ref total
    {{ param : utm_source }}  external parameter
    {{ hidden: utm_source }}  same as param

Every lookup miss, and every token of another kind ({{user:x}}), resolves
to "". A token never survives into the output and resolving never raises.

The context is rebuilt for every evaluation. Calculated values are an
explicit input: the resolver never runs calculations itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from formrt.calculations import CalculationResult
from formrt.coercion import answer_to_text, number_to_text
from formrt.model import Field, FieldType

RECALL_TOKEN_RE = re.compile(r"\{\{\s*([A-Za-z]+)\s*:\s*([A-Za-z0-9_]+)\s*\}\}")
REF_MAX_LENGTH = 30


@dataclass(frozen=True)
class RecallContext:
    """Lookup tables for one resolution pass."""
    answers_by_ref: Dict[str, str] = field(default_factory=dict)
    url_params: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, Union[str, float, int]] = field(default_factory=dict)


@dataclass
class RecallValidationResult:
    is_valid: bool
    warnings: List[str] = field(default_factory=list)


def build_answers_by_ref(fields: Iterable[Field], answers: Mapping[str, object]) -> Dict[str, str]:
    """Stringified answers of fields carrying a ref. Empty answers are omitted."""
    by_ref: Dict[str, str] = {}
    for f in fields:
        if not f.ref:
            continue
        raw = answers.get(f.id)
        if raw is None or raw == "":
            continue
        by_ref[f.ref] = answer_to_text(raw)
    return by_ref


def build_variables(fields: Iterable[Field],
                    calculated: Mapping[str, Union[CalculationResult, float, int]]) -> Dict[str, Union[float, int]]:
    """Computed values of calculated fields carrying a ref, by ref."""
    variables: Dict[str, Union[float, int]] = {}
    for f in fields:
        if f.type != FieldType.CALCULATED or not f.ref:
            continue
        if f.id not in calculated:
            continue
        result = calculated[f.id]
        variables[f.ref] = result.value if isinstance(result, CalculationResult) else result
    return variables


def build_recall_context(fields: Sequence[Field],
                         answers: Mapping[str, object],
                         url_params: Optional[Mapping[str, str]] = None,
                         calculated: Optional[Mapping[str, Union[CalculationResult, float, int]]] = None) -> RecallContext:
    """
    Assemble a RecallContext.

    Args:
        fields: Fields whose answers may be recalled (normally the visible ones)
        answers: Raw answers by field id
        url_params: External parameters, reserved names already stripped
        calculated: Output of the calculation pass, by field id
    """
    return RecallContext(
        answers_by_ref=build_answers_by_ref(fields, answers),
        url_params=dict(url_params or {}),
        variables=build_variables(fields, calculated or {}),
    )


def _variable_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return number_to_text(value)
    return str(value)


def resolve_token(kind: str, name: str, context: RecallContext) -> str:
    if kind == "field":
        return context.answers_by_ref.get(name, "")
    if kind in ("param", "hidden"):
        value = context.url_params.get(name)
        return "" if value is None else str(value)
    if kind == "var":
        return _variable_text(context.variables.get(name))
    return ""


def resolve_recall(template: Optional[str], context: RecallContext) -> str:
    """Template with every recall token substituted."""
    if not template:
        return ""
    return RECALL_TOKEN_RE.sub(lambda m: resolve_token(m.group(1), m.group(2), context), template)


def find_recall_tokens(text: Optional[str]) -> List[Tuple[str, str]]:
    """(kind, name) of every token in text, in order."""
    if not text:
        return []
    return [(m.group(1), m.group(2)) for m in RECALL_TOKEN_RE.finditer(text)]


def validate_recall_tokens(text: Optional[str],
                           fields: Sequence[Field],
                           url_param_names: Iterable[str],
                           current_order_index: Optional[int] = None) -> RecallValidationResult:
    """
    Authoring-time warnings for the tokens in a template.

    field/var tokens must name an existing ref, and when current_order_index
    is given the field must come before it. param/hidden tokens must name a
    configured parameter.
    """
    warnings: List[str] = []
    param_names = set(url_param_names)

    for match in RECALL_TOKEN_RE.finditer(text or ""):
        token, kind, name = match.group(0), match.group(1), match.group(2)

        if kind in ("field", "var"):
            target = next((f for f in fields if f.ref == name), None)
            if target is None:
                warnings.append(f'Token {token} references unknown field "{name}"')
            elif current_order_index is not None and target.order_index >= current_order_index:
                warnings.append(f'Token {token} references field "{target.label}" which appears later in form')
        elif kind in ("param", "hidden"):
            if name not in param_names:
                warnings.append(f'Token {token} references undefined URL parameter "{name}"')
        else:
            warnings.append(f'Token {token} has unknown kind "{kind}"')

    return RecallValidationResult(is_valid=not warnings, warnings=warnings)


def generate_ref(label: str, existing_refs: Iterable[str]) -> str:
    """
    Derive a unique ref from a label.

    "Full Name" -> "full_name"; "full_name_1", "full_name_2", ... on clashes.
    """
    base = re.sub(r"[^a-z0-9]", "_", (label or "").lower())
    base = base.strip("_")[:REF_MAX_LENGTH]
    if not base:
        base = "field"

    taken = set(existing_refs)
    ref = base
    counter = 1
    while ref in taken:
        ref = f"{base}_{counter}"
        counter += 1
    return ref
