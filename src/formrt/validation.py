"""
Answer validation rules.

The rule set is the one the authoring UI can configure; the runtime
itself only needs required checks for visible fields.
An empty answer is checked by required rules only. File rules are carried
in the model but not checked here (no file access).
"""

from __future__ import annotations

import logging
import re
from typing import List, Mapping, Sequence

from formrt.coercion import answer_to_text, is_empty_answer, parse_number
from formrt.model import Field, RuleType, ValidationRule

logger = logging.getLogger(__name__)


def _name(f: Field) -> str:
    return f.label or f.id


def _rule_number(rule: ValidationRule):
    return parse_number(rule.value) if rule.value is not None else None


def _check_rule(f: Field, rule: ValidationRule, value) -> str | None:
    if rule.type == RuleType.REQUIRED:
        if is_empty_answer(value):
            return rule.message or f"{_name(f)} is required"
        return None

    if is_empty_answer(value):
        return None

    text = answer_to_text(value)
    limit = _rule_number(rule)

    if rule.type == RuleType.MIN_LENGTH and limit is not None:
        if len(text) < limit:
            return rule.message or f"{_name(f)} must be at least {int(limit)} characters"
    elif rule.type == RuleType.MAX_LENGTH and limit is not None:
        if len(text) > limit:
            return rule.message or f"{_name(f)} must be at most {int(limit)} characters"
    elif rule.type == RuleType.PATTERN and rule.value:
        try:
            matched = re.search(str(rule.value), text) is not None
        except re.error as e:
            logger.debug("Ignoring invalid pattern on field %s: %s", f.id, e)
            return None
        if not matched:
            return rule.message or f"{_name(f)} has an invalid format"
    elif rule.type in (RuleType.MIN, RuleType.MAX) and limit is not None:
        number = parse_number(value)
        if number is None:
            return rule.message or f"{_name(f)} must be a number"
        if rule.type == RuleType.MIN and number < limit:
            return rule.message or f"{_name(f)} must be at least {answer_to_text(limit)}"
        if rule.type == RuleType.MAX and number > limit:
            return rule.message or f"{_name(f)} must be at most {answer_to_text(limit)}"

    return None


def validate_answer(f: Field, value) -> List[str]:
    """Messages for every rule the answer breaks, in rule order."""
    errors: List[str] = []
    rules = list(f.validation_rules)
    if f.required and not any(r.type == RuleType.REQUIRED for r in rules):
        rules.insert(0, ValidationRule(type=RuleType.REQUIRED))

    for rule in rules:
        message = _check_rule(f, rule, value)
        if message and message not in errors:
            errors.append(message)
    return errors


def missing_required_fields(fields: Sequence[Field], answers: Mapping[str, object]) -> List[Field]:
    """
    Required fields without an answer.

    Pass the visible fields only: a hidden field is never required.
    """
    missing = []
    for f in fields:
        required = f.required or any(r.type == RuleType.REQUIRED for r in f.validation_rules)
        if required and is_empty_answer(answers.get(f.id)):
            missing.append(f)
    return missing
