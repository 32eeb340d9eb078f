"""
Tests for answer validation rules.
"""

from formrt.model import Field, FieldType, RuleType, ValidationRule
from formrt.validation import missing_required_fields, validate_answer


class TestValidateAnswer:
    """Test rule checks."""

    def test_required_flag(self):
        f = Field(id="a", label="Name", required=True)
        assert validate_answer(f, "") == ["Name is required"]
        assert validate_answer(f, "Ana") == []

    def test_custom_message(self):
        f = Field(id="a", label="Name", validation_rules=[
            ValidationRule(type=RuleType.REQUIRED, message="Tell us your name"),
        ])
        assert validate_answer(f, None) == ["Tell us your name"]

    def test_lengths(self):
        f = Field(id="a", label="Code", validation_rules=[
            ValidationRule(type=RuleType.MIN_LENGTH, value=3),
            ValidationRule(type=RuleType.MAX_LENGTH, value="5"),
        ])
        assert validate_answer(f, "ab") == ["Code must be at least 3 characters"]
        assert validate_answer(f, "abcdef") == ["Code must be at most 5 characters"]
        assert validate_answer(f, "abcd") == []

    def test_empty_answer_skips_non_required_rules(self):
        f = Field(id="a", label="Code", validation_rules=[ValidationRule(type=RuleType.MIN_LENGTH, value=3)])
        assert validate_answer(f, "") == []

    def test_pattern(self):
        f = Field(id="a", label="Zip", validation_rules=[ValidationRule(type=RuleType.PATTERN, value=r"^\d{5}$")])
        assert validate_answer(f, "12345") == []
        assert validate_answer(f, "1234") == ["Zip has an invalid format"]

    def test_invalid_pattern_is_ignored(self):
        f = Field(id="a", label="Zip", validation_rules=[ValidationRule(type=RuleType.PATTERN, value="(")])
        assert validate_answer(f, "x") == []

    def test_min_max(self):
        f = Field(id="a", type=FieldType.NUMBER, label="Age", validation_rules=[
            ValidationRule(type=RuleType.MIN, value=18),
            ValidationRule(type=RuleType.MAX, value=99),
        ])
        assert validate_answer(f, "17") == ["Age must be at least 18"]
        assert validate_answer(f, 100) == ["Age must be at most 99"]
        assert validate_answer(f, "abc") == ["Age must be a number"]
        assert validate_answer(f, 30) == []

    def test_file_rules_are_not_checked(self):
        f = Field(id="a", type=FieldType.FILE, label="CV",
                  validation_rules=[ValidationRule(type=RuleType.FILE_SIZE, value=1)])
        assert validate_answer(f, "cv.pdf") == []


class TestMissingRequired:
    """Test required-field detection."""

    def test_missing(self):
        fields = [
            Field(id="a", required=True),
            Field(id="b", required=True),
            Field(id="c"),
            Field(id="d", validation_rules=[ValidationRule(type=RuleType.REQUIRED)]),
        ]
        missing = missing_required_fields(fields, {"a": "x", "b": "  "})
        assert [f.id for f in missing] == ["b", "d"]
