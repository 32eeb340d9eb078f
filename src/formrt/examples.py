"""
Example form builder.

Builds a small order form exercising every runtime engine: half/quarter
widths, a conditional shipping section, a calculated total and recall
tokens in the texts.
"""
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
    UrlParamConfig,
)


def build_example_order_form(columns: int = 4) -> Form:
    form = Form(
        id="order",
        title="Order for {{field:name}}",
        description="Referred by {{param:utm_source}}",
        layout=LayoutConfig(columns=columns, grid_gap=GridGap.MD, responsive=True),
        thank_you_message="Thanks {{field:name}}, your total is {{var:total}}.",
        redirect_url="https://example.com/done?src={{hidden:utm_source}}",
    )

    form.url_params_config = [
        UrlParamConfig(name="utm_source", default_value="direct", transitive_default=True),
    ]

    ship = ConditionalLogic(
        action=LogicAction.SHOW,
        conditions=[
            LogicCondition(id="c1", field_id="delivery", operator=ConditionOperator.EQUALS, value="ship"),
        ],
    )

    form.fields = [
        Field(id="name", type=FieldType.TEXT, label="Name", ref="name",
              width=FieldWidth.HALF, order_index=0, required=True),
        Field(id="email", type=FieldType.EMAIL, label="Email", ref="email",
              width=FieldWidth.HALF, order_index=1),
        Field(id="qty", type=FieldType.NUMBER, label="Quantity",
              width=FieldWidth.QUARTER, order_index=2),
        Field(id="price", type=FieldType.NUMBER, label="Price",
              width=FieldWidth.QUARTER, order_index=3),
        Field(id="tax", type=FieldType.NUMBER, label="Tax",
              width=FieldWidth.HALF, order_index=4),
        Field(id="delivery", type=FieldType.RADIO, label="Delivery",
              width=FieldWidth.FULL, order_index=5),
        Field(id="address", type=FieldType.TEXTAREA, label="Shipping address",
              placeholder="Where should we ship it, {{field:name}}?",
              width=FieldWidth.FULL, order_index=6, required=True,
              conditional_logic=ship),
        Field(id="total", type=FieldType.CALCULATED, label="Total", ref="total",
              width=FieldWidth.FULL, order_index=7,
              calculations=CalculationFormula(
                  id="total",
                  expression="{Quantity} * {Price} + {Tax}",
                  format=CalculationFormat.CURRENCY,
                  decimal_places=2,
              )),
    ]

    return form
