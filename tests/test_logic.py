"""
Tests for the Conditional Logic Evaluator.

These tests verify:
    - Every condition operator
    - The left-to-right AND/OR fold (no precedence)
    - show vs hide actions
    - Fail-open behavior for malformed logic
    - Visible field ordering
"""

import pytest
from formrt.model import (
    ConditionalLogic,
    ConditionOperator,
    Field,
    LogicAction,
    LogicCondition,
    LogicOperator,
)
from formrt.logic import (
    evaluate_condition,
    evaluate_logic,
    is_field_visible,
    referenced_field_ids,
    visible_fields,
)
from formrt.serialization import field_from_dict


def cond(field_id, operator, value="", logic_operator=None):
    return LogicCondition(id=f"c-{field_id}", field_id=field_id, operator=operator,
                          value=value, logic_operator=logic_operator)


class TestOperators:
    """Test single-condition semantics."""

    def test_equals_on_string_and_number(self):
        c = cond("a", ConditionOperator.EQUALS, "1")
        assert evaluate_condition(c, {"a": "1"})
        assert evaluate_condition(c, {"a": 1})
        assert not evaluate_condition(c, {"a": "2"})

    def test_equals_missing_answer_is_empty_string(self):
        assert evaluate_condition(cond("a", ConditionOperator.EQUALS, ""), {})
        assert not evaluate_condition(cond("a", ConditionOperator.EQUALS, "x"), {})

    def test_not_equals(self):
        c = cond("a", ConditionOperator.NOT_EQUALS, "yes")
        assert evaluate_condition(c, {"a": "no"})
        assert evaluate_condition(c, {})
        assert not evaluate_condition(c, {"a": "yes"})

    def test_contains_is_case_insensitive(self):
        c = cond("a", ConditionOperator.CONTAINS, "Blue")
        assert evaluate_condition(c, {"a": "light BLUE sky"})
        assert not evaluate_condition(c, {"a": "red"})

    def test_contains_on_list_answer(self):
        c = cond("a", ConditionOperator.CONTAINS, "pizza")
        assert evaluate_condition(c, {"a": ["salad", "Pizza"]})

    def test_greater_and_less_than(self):
        assert evaluate_condition(cond("a", ConditionOperator.GREATER_THAN, "10"), {"a": "11"})
        assert not evaluate_condition(cond("a", ConditionOperator.GREATER_THAN, "10"), {"a": 10})
        assert evaluate_condition(cond("a", ConditionOperator.LESS_THAN, "10"), {"a": 9.5})

    def test_numeric_comparison_coerces_missing_to_zero(self):
        assert evaluate_condition(cond("a", ConditionOperator.LESS_THAN, "1"), {})
        assert evaluate_condition(cond("a", ConditionOperator.LESS_THAN, "1"), {"a": "abc"})
        assert not evaluate_condition(cond("a", ConditionOperator.GREATER_THAN, "0"), {"a": "abc"})

    def test_numeric_comparison_with_non_numeric_value_is_false(self):
        assert not evaluate_condition(cond("a", ConditionOperator.GREATER_THAN, "many"), {"a": 5})
        assert not evaluate_condition(cond("a", ConditionOperator.LESS_THAN, "many"), {"a": 5})

    def test_int_answer_too_large_for_float_is_non_numeric(self):
        assert not evaluate_condition(cond("a", ConditionOperator.GREATER_THAN, "5"), {"a": 10 ** 400})
        assert evaluate_condition(cond("a", ConditionOperator.LESS_THAN, "5"), {"a": 10 ** 400})
        assert evaluate_condition(cond("a", ConditionOperator.IS_NOT_EMPTY), {"a": 10 ** 5000})

    def test_is_empty(self):
        c = cond("a", ConditionOperator.IS_EMPTY)
        assert evaluate_condition(c, {})
        assert evaluate_condition(c, {"a": None})
        assert evaluate_condition(c, {"a": "   "})
        assert evaluate_condition(c, {"a": []})
        assert not evaluate_condition(c, {"a": "x"})
        assert not evaluate_condition(c, {"a": 0})

    def test_is_not_empty(self):
        c = cond("a", ConditionOperator.IS_NOT_EMPTY)
        assert evaluate_condition(c, {"a": "x"})
        assert not evaluate_condition(c, {"a": " "})

    def test_unknown_operator_is_false(self):
        assert not evaluate_condition(cond("a", None, "x"), {"a": "x"})


class TestFold:
    """Test chain combination."""

    def chain(self, action=LogicAction.SHOW):
        return ConditionalLogic(action=action, conditions=[
            cond("A", ConditionOperator.EQUALS, "1", LogicOperator.AND),
            cond("B", ConditionOperator.EQUALS, "2", LogicOperator.OR),
            cond("C", ConditionOperator.EQUALS, "3"),
        ])

    @pytest.mark.parametrize("a,b,c", [
        (a, b, c) for a in ("1", "0") for b in ("2", "0") for c in ("3", "0")
    ])
    def test_left_to_right_without_precedence(self, a, b, c):
        """[A==1 (AND), B==2 (OR), C==3] is (A and B) or C."""
        answers = {"A": a, "B": b, "C": c}
        expected = (a == "1" and b == "2") or c == "3"
        assert evaluate_logic(self.chain(), answers) is expected

    def test_differs_from_standard_precedence(self):
        """A and (B or C) would be false here; the fold gives true."""
        answers = {"A": "0", "B": "0", "C": "3"}
        assert evaluate_logic(self.chain(), answers) is True

    def test_or_then_and(self):
        """[A (OR), B (AND), C] is (A or B) and C."""
        logic = ConditionalLogic(action=LogicAction.SHOW, conditions=[
            cond("A", ConditionOperator.EQUALS, "1", LogicOperator.OR),
            cond("B", ConditionOperator.EQUALS, "1", LogicOperator.AND),
            cond("C", ConditionOperator.EQUALS, "1"),
        ])
        assert evaluate_logic(logic, {"A": "1", "C": "0"}) is False
        assert evaluate_logic(logic, {"A": "1", "C": "1"}) is True

    def test_missing_logic_operator_means_and(self):
        logic = ConditionalLogic(action=LogicAction.SHOW, conditions=[
            cond("A", ConditionOperator.EQUALS, "1"),
            cond("B", ConditionOperator.EQUALS, "1"),
        ])
        assert evaluate_logic(logic, {"A": "1", "B": "1"})
        assert not evaluate_logic(logic, {"A": "1", "B": "0"})

    def test_trailing_logic_operator_is_ignored(self):
        logic = ConditionalLogic(action=LogicAction.SHOW, conditions=[
            cond("A", ConditionOperator.EQUALS, "1", LogicOperator.OR),
        ])
        assert not evaluate_logic(logic, {"A": "0"})

    def test_hide_action_negates(self):
        assert evaluate_logic(self.chain(LogicAction.HIDE), {"C": "3"}) is False
        assert evaluate_logic(self.chain(LogicAction.HIDE), {}) is True

    def test_empty_conditions_always_visible(self):
        assert evaluate_logic(ConditionalLogic(action=LogicAction.HIDE), {})
        assert evaluate_logic(ConditionalLogic.noop(), {})


class TestVisibility:
    """Test field list filtering."""

    def build(self):
        return [
            Field(id="q1", label="Has pet?"),
            Field(id="q2", label="Pet name", conditional_logic=ConditionalLogic(
                action=LogicAction.SHOW,
                conditions=[cond("q1", ConditionOperator.EQUALS, "yes")],
            )),
            Field(id="q3", label="Why not?", conditional_logic=ConditionalLogic(
                action=LogicAction.HIDE,
                conditions=[cond("q1", ConditionOperator.EQUALS, "yes")],
            )),
            Field(id="q4", label="Comments"),
        ]

    def test_visible_subset_keeps_order(self):
        fields = self.build()
        assert [f.id for f in visible_fields(fields, {"q1": "yes"})] == ["q1", "q2", "q4"]
        assert [f.id for f in visible_fields(fields, {"q1": "no"})] == ["q1", "q3", "q4"]

    def test_single_field_query(self):
        fields = self.build()
        assert is_field_visible(fields, "q2", {"q1": "yes"})
        assert not is_field_visible(fields, "q2", {})
        assert is_field_visible(fields, "missing", {})

    def test_answers_are_not_mutated(self):
        answers = {"q1": "yes"}
        visible_fields(self.build(), answers)
        assert answers == {"q1": "yes"}

    def test_unparsable_logic_fails_open(self):
        with pytest.warns(UserWarning):
            f = field_from_dict({"id": "q9", "conditional_logic": "{not json"})
        assert visible_fields([f], {}) == [f]

    def test_logic_with_wrong_shape_fails_open(self):
        with pytest.warns(UserWarning):
            f = field_from_dict({"id": "q9", "conditional_logic": {"action": "hide", "conditions": "q1"}})
        assert is_field_visible([f], "q9", {})

    def test_referenced_field_ids(self):
        fields = self.build()
        assert referenced_field_ids(fields[1].conditional_logic) == ["q1"]
        assert referenced_field_ids(None) == []
