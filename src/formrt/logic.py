"""
Conditional Logic Evaluator.

Decides which fields are visible for the current answers.

Chain semantics (kept exactly as every render surface already relies on):

    result = eval(c[0])
    for i in 1..n-1:
        if c[i-1].logic_operator is OR: result = result or eval(c[i])
        else:                           result = result and eval(c[i])
    visible = result if action is SHOW else not result

This is a strict left-to-right fold with no operator precedence:
[A (AND), B (OR), C] means (A and B) or C.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from formrt.coercion import answer_to_text, is_empty_answer, parse_number
from formrt.model import (
    AnswerMap,
    ConditionalLogic,
    ConditionOperator,
    Field,
    LogicAction,
    LogicCondition,
    LogicOperator,
)

logger = logging.getLogger(__name__)


def evaluate_condition(condition: LogicCondition, answers: Mapping[str, object]) -> bool:
    """
    Evaluate one condition against the referenced field's raw answer.

    Unknown operators (operator is None) are false.
    """
    answer = answers.get(condition.field_id)
    op = condition.operator
    expected = condition.value

    if op == ConditionOperator.EQUALS:
        return answer_to_text(answer) == expected
    if op == ConditionOperator.NOT_EQUALS:
        return answer_to_text(answer) != expected
    if op == ConditionOperator.CONTAINS:
        return expected.lower() in answer_to_text(answer).lower()
    if op in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN):
        actual = parse_number(answer)
        if actual is None:
            actual = 0.0
        threshold = parse_number(expected)
        if threshold is None:
            return False
        if op == ConditionOperator.GREATER_THAN:
            return actual > threshold
        return actual < threshold
    if op == ConditionOperator.IS_EMPTY:
        return is_empty_answer(answer)
    if op == ConditionOperator.IS_NOT_EMPTY:
        return not is_empty_answer(answer)

    return False


def evaluate_logic(logic: ConditionalLogic, answers: Mapping[str, object]) -> bool:
    """
    Visibility of a field carrying this logic.

    An empty condition list is always visible, whatever the action.
    """
    if not logic.conditions:
        return True

    result = evaluate_condition(logic.conditions[0], answers)

    for previous, condition in zip(logic.conditions, logic.conditions[1:]):
        current = evaluate_condition(condition, answers)
        if previous.logic_operator == LogicOperator.OR:
            result = result or current
        else:
            result = result and current

    if logic.action == LogicAction.SHOW:
        return result
    return not result


def is_visible(f: Field, answers: Mapping[str, object]) -> bool:
    """Visibility of a single field. Fields without logic are always visible."""
    if f.conditional_logic is None:
        return True
    return evaluate_logic(f.conditional_logic, answers)


def visible_fields(fields: Sequence[Field], answers: AnswerMap) -> List[Field]:
    """Fields currently permitted to display, in input order."""
    return [f for f in fields if is_visible(f, answers)]


def is_field_visible(fields: Sequence[Field], field_id: str, answers: AnswerMap) -> bool:
    """
    Ad-hoc visibility query by field id.

    An id that is not in the list is reported visible.
    """
    target: Optional[Field] = None
    for f in fields:
        if f.id == field_id:
            target = f
            break
    if target is None:
        logger.debug("Visibility queried for unknown field %s", field_id)
        return True
    return is_visible(target, answers)


def referenced_field_ids(logic: Optional[ConditionalLogic]) -> List[str]:
    """Field ids a logic chain depends on, in condition order."""
    if logic is None:
        return []
    return [c.field_id for c in logic.conditions]
