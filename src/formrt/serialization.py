"""
Serialization helpers for form definitions.

Two jobs:
    1. The single parse boundary for stored payloads. Conditional logic,
       formulas and validation rules are stored as loosely-typed blobs,
       sometimes JSON strings, sometimes already-structured. They become
       model objects here, and malformed input becomes the explicit no-op
       variant (with a UserWarning), never a guess.
    2. Lossless JSON/YAML round-trip of a parsed Form via an intermediate
       dict representation.

Stored payload keys keep their original camelCase spelling
(fieldId, logicOperator, decimalPlaces).
"""
from __future__ import annotations

import json
import logging
import math
import warnings
from typing import Any, Dict, List, Optional

import yaml

from formrt.coercion import answer_to_text
from formrt.model import (
    CalculationFormat,
    CalculationFormula,
    ConditionalLogic,
    ConditionOperator,
    Field,
    FieldType,
    FieldWidth,
    Form,
    GridGap,
    LayoutConfig,
    LogicAction,
    LogicCondition,
    LogicOperator,
    RuleType,
    UrlParamConfig,
    ValidationRule,
)

logger = logging.getLogger(__name__)

DEFAULT_DECIMAL_PLACES = 2


class PayloadError(ValueError):
    """Raised internally when a stored payload has the wrong shape."""
    pass


def _load(raw: Any) -> Any:
    """Decode string-encoded JSON; pass structured values through."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError as e:
            raise PayloadError(f"invalid JSON: {e}")
    return raw


def _enum_or_none(enum_cls, raw: Any):
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def _blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


# =============================================================================
# CONDITIONAL LOGIC
# =============================================================================

def condition_from_dict(d: Any) -> LogicCondition:
    if not isinstance(d, dict):
        raise PayloadError(f"condition must be an object, got {type(d).__name__}")
    field_id = d.get("fieldId")
    if not isinstance(field_id, str) or not field_id:
        raise PayloadError("condition has no fieldId")

    logic_op = d.get("logicOperator")
    if isinstance(logic_op, str):
        logic_op = _enum_or_none(LogicOperator, logic_op.upper())
    else:
        logic_op = None

    return LogicCondition(
        id=str(d.get("id", "")),
        field_id=field_id,
        operator=_enum_or_none(ConditionOperator, d.get("operator")),
        value=answer_to_text(d.get("value")),
        logic_operator=logic_op,
    )


def _conditional_logic_from_raw(raw: Any) -> ConditionalLogic:
    data = _load(raw)
    if not isinstance(data, dict):
        raise PayloadError("conditional logic must be an object")
    action = _enum_or_none(LogicAction, data.get("action"))
    if action is None:
        raise PayloadError(f"unknown action {data.get('action')!r}")
    conditions = data.get("conditions", [])
    if not isinstance(conditions, list):
        raise PayloadError("conditions must be a list")
    return ConditionalLogic(
        action=action,
        conditions=[condition_from_dict(c) for c in conditions],
    )


def conditional_logic_from_payload(raw: Any, field_id: str = "?") -> Optional[ConditionalLogic]:
    """
    Parse a stored conditional logic payload.

    Returns:
        None when there is no logic, the parsed ConditionalLogic, or
        ConditionalLogic.noop() (with a UserWarning) when it is malformed
    """
    if isinstance(raw, ConditionalLogic):
        return raw
    if _blank(raw):
        return None
    try:
        return _conditional_logic_from_raw(raw)
    except PayloadError as e:
        warnings.warn(f"Malformed conditional logic on field {field_id}: {e}", UserWarning)
        return ConditionalLogic.noop()


def conditional_logic_to_payload(logic: ConditionalLogic | None) -> Any:
    if logic is None:
        return None
    conditions = []
    for c in logic.conditions:
        item = {
            "id": c.id,
            "fieldId": c.field_id,
            "operator": c.operator.value if c.operator else None,
            "value": c.value,
        }
        if c.logic_operator is not None:
            item["logicOperator"] = c.logic_operator.value
        conditions.append(item)
    return {"action": logic.action.value, "conditions": conditions}


# =============================================================================
# CALCULATIONS
# =============================================================================

def _decimal_places(raw: Any) -> int:
    if isinstance(raw, bool):
        return DEFAULT_DECIMAL_PLACES
    if isinstance(raw, (int, float)) and math.isfinite(raw) and raw >= 0:
        return int(raw)
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return DEFAULT_DECIMAL_PLACES


def calculation_from_payload(raw: Any, field_id: str = "?") -> Optional[CalculationFormula]:
    """
    Parse a stored calculation payload.

    Calculations were stored as a list of formulas; only the first one is
    used. Malformed input means "no formula".
    """
    if isinstance(raw, CalculationFormula):
        return raw
    if _blank(raw):
        return None
    try:
        data = _load(raw)
        if isinstance(data, list):
            if not data:
                return None
            data = data[0]
        if not isinstance(data, dict):
            raise PayloadError("calculation must be an object")
        expression = data.get("expression")
        if not isinstance(expression, str):
            raise PayloadError("calculation has no expression")
    except PayloadError as e:
        warnings.warn(f"Malformed calculation on field {field_id}: {e}", UserWarning)
        return None

    return CalculationFormula(
        id=str(data.get("id", field_id)),
        expression=expression,
        format=_enum_or_none(CalculationFormat, data.get("format")) or CalculationFormat.NUMBER,
        decimal_places=_decimal_places(data.get("decimalPlaces")),
    )


def calculation_to_payload(formula: CalculationFormula | None) -> Any:
    if formula is None:
        return None
    return {
        "id": formula.id,
        "expression": formula.expression,
        "format": formula.format.value,
        "decimalPlaces": formula.decimal_places,
    }


# =============================================================================
# VALIDATION RULES
# =============================================================================

def validation_rules_from_payload(raw: Any, field_id: str = "?") -> List[ValidationRule]:
    """Parse stored validation rules. Unknown rule types are dropped."""
    if _blank(raw):
        return []
    try:
        data = _load(raw)
    except PayloadError as e:
        warnings.warn(f"Malformed validation rules on field {field_id}: {e}", UserWarning)
        return []
    if not isinstance(data, list):
        return []

    rules = []
    for item in data:
        if isinstance(item, ValidationRule):
            rules.append(item)
            continue
        if not isinstance(item, dict):
            continue
        rule_type = _enum_or_none(RuleType, item.get("type"))
        if rule_type is None:
            logger.debug("Dropping unknown validation rule %r on field %s", item.get("type"), field_id)
            continue
        rules.append(ValidationRule(type=rule_type, value=item.get("value"), message=item.get("message")))
    return rules


def validation_rules_to_payload(rules: List[ValidationRule]) -> List[Dict[str, Any]]:
    out = []
    for r in rules:
        item: Dict[str, Any] = {"type": r.type.value}
        if r.value is not None:
            item["value"] = r.value
        if r.message is not None:
            item["message"] = r.message
        out.append(item)
    return out


# =============================================================================
# FIELDS, LAYOUT, URL PARAMETERS, FORMS
# =============================================================================

def field_to_dict(f: Field) -> Dict[str, Any]:
    return {
        "id": f.id,
        "type": f.type.value,
        "label": f.label,
        "ref": f.ref,
        "width": f.width.value,
        "order_index": f.order_index,
        "required": f.required,
        "description": f.description,
        "placeholder": f.placeholder,
        "conditional_logic": conditional_logic_to_payload(f.conditional_logic),
        "calculations": calculation_to_payload(f.calculations),
        "validation_rules": validation_rules_to_payload(f.validation_rules),
    }


def field_from_dict(d: Dict[str, Any]) -> Field:
    field_id = str(d["id"])
    logic_raw = d.get("conditional_logic")
    if _blank(logic_raw):
        logic_raw = d.get("logic_conditions")
    order_index = d.get("order_index", 0)
    return Field(
        id=field_id,
        type=_enum_or_none(FieldType, d.get("type")) or FieldType.TEXT,
        label=d.get("label") or "",
        ref=d.get("ref") or None,
        width=_enum_or_none(FieldWidth, d.get("width")) or FieldWidth.FULL,
        order_index=order_index if isinstance(order_index, int) else 0,
        required=bool(d.get("required", False)),
        description=d.get("description"),
        placeholder=d.get("placeholder"),
        conditional_logic=conditional_logic_from_payload(logic_raw, field_id),
        calculations=calculation_from_payload(d.get("calculations"), field_id),
        validation_rules=validation_rules_from_payload(d.get("validation_rules"), field_id),
    )


def layout_to_dict(layout: LayoutConfig) -> Dict[str, Any]:
    return {"columns": layout.columns, "grid_gap": layout.grid_gap.value, "responsive": layout.responsive}


def layout_from_dict(d: Dict[str, Any] | None) -> LayoutConfig:
    if not d:
        return LayoutConfig()
    columns = d.get("columns", 4)
    gap = d.get("grid_gap", d.get("gridGap"))
    return LayoutConfig(
        columns=columns if isinstance(columns, int) and not isinstance(columns, bool) else 4,
        grid_gap=_enum_or_none(GridGap, gap) or GridGap.MD,
        responsive=bool(d.get("responsive", True)),
    )


def url_param_to_dict(p: UrlParamConfig) -> Dict[str, Any]:
    return {
        "name": p.name,
        "label": p.label,
        "description": p.description,
        "include_in_responses": p.include_in_responses,
        "visible_in_exports": p.visible_in_exports,
        "default_value": p.default_value,
        "transitive_default": p.transitive_default,
    }


def url_param_from_dict(d: Dict[str, Any]) -> UrlParamConfig:
    return UrlParamConfig(
        name=d.get("name") or "",
        label=d.get("label"),
        description=d.get("description"),
        include_in_responses=d.get("include_in_responses", True),
        visible_in_exports=d.get("visible_in_exports", True),
        default_value=d.get("default_value"),
        transitive_default=bool(d.get("transitive_default", False)),
    )


def form_to_dict(form: Form) -> Dict[str, Any]:
    return {
        "id": form.id,
        "title": form.title,
        "description": form.description,
        "fields": [field_to_dict(f) for f in form.fields],
        "layout": layout_to_dict(form.layout),
        "url_params_config": [url_param_to_dict(p) for p in form.url_params_config],
        "thank_you_message": form.thank_you_message,
        "redirect_url": form.redirect_url,
    }


def form_from_dict(d: Dict[str, Any]) -> Form:
    form = Form(id=str(d.get("id", "")), title=d.get("title") or "")
    form.description = d.get("description")
    form.fields = [field_from_dict(f) for f in d.get("fields") or []]
    form.layout = layout_from_dict(d.get("layout"))
    form.url_params_config = [url_param_from_dict(p) for p in d.get("url_params_config") or []]
    form.thank_you_message = d.get("thank_you_message")
    form.redirect_url = d.get("redirect_url")
    return form


def form_to_json(form: Form) -> str:
    return json.dumps(form_to_dict(form), sort_keys=True)


def form_from_json(s: str) -> Form:
    d = json.loads(s)
    return form_from_dict(d)


def form_to_yaml(form: Form) -> str:
    return yaml.safe_dump(form_to_dict(form), sort_keys=False)


def form_from_yaml(s: str) -> Form:
    d = yaml.safe_load(s)
    return form_from_dict(d)
