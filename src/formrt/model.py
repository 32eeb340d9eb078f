"""
Core Form Model Objects

Defines the data structures every runtime engine consumes:
    - Fields (one input/display unit of a form)
    - Conditional logic (show/hide rule sets)
    - Calculation formulas (calculated fields)
    - Layout configuration and derived grid positions
    - Forms (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about storage, DOM or widgets
        - Are already parsed (no JSON strings, no loose dicts)
        - Are read-only for the engines
        - Represent structure, not behavior

Loosely-typed stored payloads become these objects in exactly one place:
formrt.serialization.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class FieldType(Enum):
    """
    Field kinds known to the runtime.

    Only a few are semantically special:
        - numeric-capable types may be referenced by formulas
        - CALCULATED fields carry a formula and feed recall variables
    """

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    MULTISELECT = "multiselect"
    FILE = "file"
    SIGNATURE = "signature"
    RATING = "rating"
    SLIDER = "slider"
    RANGE = "range"
    MATRIX = "matrix"
    DIVIDER = "divider"
    HTML = "html"
    PAGEBREAK = "pagebreak"
    SECTION = "section"
    CALCULATED = "calculated"


# Field types a formula may reference
NUMERIC_FIELD_TYPES = frozenset({
    FieldType.NUMBER,
    FieldType.SLIDER,
    FieldType.RANGE,
    FieldType.RATING,
})


class FieldWidth(Enum):
    """Horizontal share of the grid a field occupies."""
    FULL = "full"
    HALF = "half"
    QUARTER = "quarter"


class GridGap(Enum):
    """Spacing between grid cells."""
    SM = "sm"
    MD = "md"
    LG = "lg"


class LogicAction(Enum):
    """What a satisfied condition chain does to its field."""
    SHOW = "show"
    HIDE = "hide"


class ConditionOperator(Enum):
    """
    Comparison applied between a referenced answer and a condition value.

    Keep this closed. Adding an operator means adding a branch in
    formrt.logic.evaluate_condition.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class LogicOperator(Enum):
    """Joins a condition with the one that FOLLOWS it."""
    AND = "AND"
    OR = "OR"


class CalculationFormat(Enum):
    """Display format of a calculated value."""
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"


class RuleType(Enum):
    """Answer validation rule kinds."""
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"
    FILE_SIZE = "fileSize"
    FILE_TYPES = "fileTypes"


@dataclass(frozen=True)
class LogicCondition:
    """
    A single comparison inside a conditional logic chain.

    Properties:
        id: Condition identifier (authoring UI bookkeeping)
        field_id: Id of the field whose answer is compared
        operator: ConditionOperator, or None when the stored operator
            was not recognised (such a condition is always false)
        value: Comparison value, always kept as text
        logic_operator:
            How the NEXT condition combines with the running result.
            None means AND.

    IMPORTANT:
        logic_operator looks forward, not backward.
        [A (OR), B] means "A OR B".
    """

    id: str
    field_id: str
    operator: Optional[ConditionOperator]
    value: str = ""
    logic_operator: Optional[LogicOperator] = None


@dataclass(frozen=True)
class ConditionalLogic:
    """
    Show/hide rule set of one field.

    An empty condition list is the no-op variant: it never hides anything,
    whatever the action says.
    """

    action: LogicAction
    conditions: List[LogicCondition] = field(default_factory=list)

    @classmethod
    def noop(cls) -> "ConditionalLogic":
        return cls(action=LogicAction.SHOW, conditions=[])

    @property
    def is_noop(self) -> bool:
        return not self.conditions


@dataclass(frozen=True)
class CalculationFormula:
    """
    Arithmetic expression of a calculated field.

    Example:
        CalculationFormula(
            id="total",
            expression="{Quantity} * {Price} + {Tax}",
            format=CalculationFormat.CURRENCY,
            decimal_places=2,
        )

    Placeholders name another field by id or by label.
    """

    id: str
    expression: str
    format: CalculationFormat = CalculationFormat.NUMBER
    decimal_places: int = 2


@dataclass(frozen=True)
class ValidationRule:
    """One answer validation rule. value and message are optional."""
    type: RuleType
    value: Optional[Union[str, int, float]] = None
    message: Optional[str] = None


@dataclass
class Field:
    """
    One input or display unit of a form.

    Properties:
        id:
            Volatile internal identifier. Answers are keyed by it.
        type:
            FieldType
        label:
            Human-readable label. Also usable as a formula reference.
        ref:
            Optional author-chosen stable name used by recall tokens.
            Uniqueness is the caller's responsibility.
        width:
            FieldWidth for the layout packer
        order_index:
            Position in the form
        conditional_logic:
            Parsed show/hide rules, or None (always visible)
        calculations:
            Parsed formula for CALCULATED fields, or None
        validation_rules:
            Answer validation rules (may be empty)
    """

    id: str
    type: FieldType = FieldType.TEXT
    label: str = ""
    ref: Optional[str] = None
    width: FieldWidth = FieldWidth.FULL
    order_index: int = 0
    required: bool = False
    description: Optional[str] = None
    placeholder: Optional[str] = None
    conditional_logic: Optional[ConditionalLogic] = None
    calculations: Optional[CalculationFormula] = None
    validation_rules: List[ValidationRule] = field(default_factory=list)


@dataclass(frozen=True)
class LayoutConfig:
    """
    Grid configuration of a form.

    columns below 1 is invalid input; the layout engine clamps it to 1.
    """

    columns: int = 4
    grid_gap: GridGap = GridGap.MD
    responsive: bool = True


@dataclass(frozen=True)
class FieldPosition:
    """
    Derived grid placement of one field.

    x is the column offset, y the row index, width the column span.
    height is always 1.
    """

    id: str
    x: int
    y: int
    width: int
    height: int = 1


@dataclass(frozen=True)
class UrlParamConfig:
    """
    Declares an external parameter a form accepts.

    Properties:
        name: Parameter name, [A-Za-z0-9_]+ and not reserved
        default_value: Static value used when nothing else is supplied
        transitive_default: Capture the value from the hosting page URL
    """

    name: str
    label: Optional[str] = None
    description: Optional[str] = None
    include_in_responses: bool = True
    visible_in_exports: bool = True
    default_value: Optional[str] = None
    transitive_default: bool = False


# Raw answer values as the presentation layer stores them
Answer = Any
AnswerMap = Dict[str, Answer]


@dataclass
class Form:
    """
    Root container of a form definition.

    The text properties (title, description, thank_you_message,
    redirect_url) may contain recall tokens.

    INVARIANTS:
        - Field ids are unique
        - Everything the runtime renders is derivable from this object
          plus an answer map and the external parameters
    """

    id: str
    title: str = ""
    description: Optional[str] = None
    fields: List[Field] = field(default_factory=list)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    url_params_config: List[UrlParamConfig] = field(default_factory=list)
    thank_you_message: Optional[str] = None
    redirect_url: Optional[str] = None

    def ordered_fields(self) -> List[Field]:
        """Fields sorted by order_index. Ties keep declaration order."""
        return sorted(self.fields, key=lambda f: f.order_index)

    def get_field(self, field_id: str) -> Optional[Field]:
        """
        Retrieve a field by id.

        Returns:
            Field object or None if not found
        """
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def find_field_by_ref(self, ref: str) -> Optional[Field]:
        """First field carrying the given ref, or None."""
        for f in self.fields:
            if f.ref and f.ref == ref:
                return f
        return None
