"""
Tests for the Form Analyzer.

Tests verify that the analyzer correctly:
    - Inventories fields
    - Detects unknown, forward and cyclic condition references
    - Reports invalid formulas
    - Reports recall token problems
    - Reports duplicate refs and URL parameter config errors
"""

from formrt.analyzer import analyze_form
from formrt.examples import build_example_order_form
from formrt.model import (
    CalculationFormula,
    ConditionalLogic,
    ConditionOperator,
    Field,
    FieldType,
    Form,
    LogicAction,
    LogicCondition,
    UrlParamConfig,
)


def show_if(field_id):
    return ConditionalLogic(action=LogicAction.SHOW, conditions=[
        LogicCondition(id="c", field_id=field_id, operator=ConditionOperator.IS_NOT_EMPTY),
    ])


def test_example_form_is_clean():
    report = analyze_form(build_example_order_form())
    assert report.total_fields == 8
    assert report.fields_with_logic == 1
    assert report.calculated_fields == 1
    assert report.required_fields == 2
    assert report.is_clean, report.warnings


def test_unknown_condition_reference():
    form = Form(id="f", fields=[Field(id="a", label="A", conditional_logic=show_if("ghost"))])
    report = analyze_form(form)
    assert report.unknown_condition_refs == [("a", "ghost")]
    assert any("ghost" in w for w in report.warnings)


def test_forward_condition_reference():
    form = Form(id="f", fields=[
        Field(id="a", label="A", order_index=0, conditional_logic=show_if("b")),
        Field(id="b", label="B", order_index=1),
    ])
    report = analyze_form(form)
    assert report.forward_condition_refs == [("a", "b")]
    assert not report.has_logic_cycles


def test_visibility_cycle():
    form = Form(id="f", fields=[
        Field(id="a", order_index=0, conditional_logic=show_if("b")),
        Field(id="b", order_index=1, conditional_logic=show_if("a")),
    ])
    report = analyze_form(form)
    assert report.has_logic_cycles
    assert report.cycle_example[0] == report.cycle_example[-1]
    assert any("cycle" in w for w in report.warnings)


def test_calculation_errors():
    form = Form(id="f", fields=[
        Field(id="n", type=FieldType.NUMBER, label="N"),
        Field(id="bad", type=FieldType.CALCULATED, label="Bad",
              calculations=CalculationFormula(id="bad", expression="{Missing} + 1")),
        Field(id="none", type=FieldType.CALCULATED, label="None"),
        Field(id="ok", type=FieldType.CALCULATED, label="Ok",
              calculations=CalculationFormula(id="ok", expression="{N} * 2")),
    ])
    report = analyze_form(form)
    assert set(report.calculation_errors) == {"bad", "none"}
    assert "Missing" in report.calculation_errors["bad"]


def test_recall_warnings():
    form = Form(
        id="f",
        title="Hi {{field:nobody}}",
        thank_you_message="From {{param:src}}",
        fields=[
            Field(id="a", label="Total is {{var:total}}", order_index=0),
            Field(id="t", type=FieldType.CALCULATED, ref="total", order_index=1,
                  calculations=CalculationFormula(id="t", expression="1")),
        ],
    )
    report = analyze_form(form)
    assert set(report.recall_warnings) == {"title", "thank_you_message", "a.label"}
    assert "appears later" in report.recall_warnings["a.label"][0]


def test_duplicate_refs_and_param_errors():
    form = Form(
        id="f",
        fields=[Field(id="a", ref="x"), Field(id="b", ref="x")],
        url_params_config=[UrlParamConfig(name="theme")],
    )
    report = analyze_form(form)
    assert report.duplicate_refs == {"x"}
    assert report.url_param_errors == ['Parameter "theme": Reserved parameter name']
    assert not report.is_clean
