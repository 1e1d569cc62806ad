"""Unit tests for the filter tree compiler."""

import pytest

from rowlogic.core.exceptions import InvalidFilterError
from rowlogic.filters.compiler import (
    FilterCompiler,
    compile_filter_tree,
    escape_string,
    format_literal,
)
from rowlogic.formula import EvaluationContext, dates, evaluate_formula
from rowlogic.schemas.filter import FilterGroup


def condition(field, operator, value=None):
    return {"field": field, "operator": operator, "value": value}


class TestCompileGroups:
    """Tests for group rendering."""

    def test_empty_root_compiles_to_empty_string(self):
        """Test that an empty tree compiles to an empty formula."""
        assert compile_filter_tree(None) == ""
        assert compile_filter_tree(FilterGroup()) == ""

    def test_single_condition(self, task_fields):
        """Test a one-condition tree renders without parentheses."""
        formula = compile_filter_tree(condition("Status", "equals", "done"), task_fields)
        assert formula == '{Status} = "done"'

    def test_children_are_parenthesized(self, task_fields):
        """Test a multi-child group joins parenthesized children."""
        tree = {
            "combinator": "OR",
            "children": [condition("Status", "equals", "done"), condition("Priority", "gt", 5)],
        }
        formula = compile_filter_tree(tree, task_fields)
        assert formula == '({Status} = "done") OR ({Priority} > 5)'

    def test_empty_nested_group_is_true(self, task_fields):
        """Test that an empty nested group compiles to TRUE."""
        tree = {
            "combinator": "AND",
            "children": [condition("Status", "equals", "done"), {"combinator": "OR", "children": []}],
        }
        assert compile_filter_tree(tree, task_fields) == '({Status} = "done") AND (TRUE)'

    def test_field_id_resolves_to_name(self, task_fields):
        """Test conditions naming a field id reference the field name."""
        formula = compile_filter_tree(condition("fld_name", "equals", "x"), task_fields)
        assert formula == '{Name} = "x"'

    def test_field_name_with_braces_is_rejected(self):
        """Test that field names containing braces cannot be referenced."""
        with pytest.raises(InvalidFilterError):
            compile_filter_tree(condition("a{b}", "equals", "x"))


class TestCompileConditions:
    """Tests for per-operator rendering."""

    def test_contains_is_case_insensitive(self, task_fields):
        """Test contains lower-cases both sides."""
        formula = compile_filter_tree(condition("Name", "contains", "Rep"), task_fields)
        assert formula == 'FIND("rep", LOWER({Name} & "")) > 0'

    def test_not_contains_and_starts_with(self, task_fields):
        """Test not_contains and starts_with use FIND positions."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Name", "does_not_contain", "x")) == (
            'FIND("x", LOWER({Name} & "")) = 0'
        )
        assert compiler.compile(condition("Name", "starts_with", "Wr")) == (
            'FIND("wr", LOWER({Name} & "")) = 1'
        )

    def test_ends_with(self, task_fields):
        """Test ends_with compares the right-hand characters."""
        formula = compile_filter_tree(condition("Name", "ends_with", "Report"), task_fields)
        assert formula == 'RIGHT(LOWER({Name} & ""), 6) = "report"'

    def test_is_empty(self, task_fields):
        """Test is_empty on scalar and multi-value fields."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Owner", "is_empty")) == "ISBLANK({Owner})"
        assert compiler.compile(condition("Owner", "is_not_empty")) == "NOT(ISBLANK({Owner}))"
        assert compiler.compile(condition("Tags", "is_empty")) == "LEN({Tags}) = 0"

    def test_multi_value_matches_whole_items(self, task_fields):
        """Test multi-value fields match complete items."""
        formula = compile_filter_tree(condition("Tags", "contains", "urgent"), task_fields)
        assert formula == 'FIND(", urgent, ", LOWER(", " & {Tags} & ", ")) > 0'
        formula = compile_filter_tree(condition("Tags", "equals", "Urgent"), task_fields)
        assert formula == 'FIND(", Urgent, ", ", " & {Tags} & ", ") > 0'

    def test_membership(self, task_fields):
        """Test in / not_in render OR of equality checks."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Status", "in", ["todo", "done"])) == (
            'OR({Status} = "todo", {Status} = "done")'
        )
        assert compiler.compile(condition("Status", "not_in", "todo, done")) == (
            'NOT(OR({Status} = "todo", {Status} = "done"))'
        )

    def test_empty_membership(self, task_fields):
        """Test in with no items is FALSE and not_in is TRUE."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Status", "in", [])) == "FALSE"
        assert compiler.compile(condition("Status", "not_in", [])) == "TRUE"

    def test_numeric_string_on_number_field(self, task_fields):
        """Test numeric text becomes a number literal for number fields."""
        formula = compile_filter_tree(condition("Priority", "gte", "2"), task_fields)
        assert formula == "{Priority} >= 2"

    def test_checkbox(self, task_fields):
        """Test checkbox equality against TRUE/FALSE."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Done", "equals", "true")) == "{Done} = TRUE"
        assert compiler.compile(condition("Done", "equals", False)) == "{Done} = FALSE"

    def test_number_range(self, task_fields):
        """Test in_range on a number field."""
        formula = compile_filter_tree(condition("Priority", "between", [1, 5]), task_fields)
        assert formula == "({Priority} >= 1) AND ({Priority} <= 5)"

    def test_open_ended_range(self, task_fields):
        """Test in_range with one missing bound."""
        formula = compile_filter_tree(
            condition("Priority", "in_range", {"from": 2, "to": None}), task_fields
        )
        assert formula == "{Priority} >= 2"

    def test_quotes_are_escaped(self, task_fields):
        """Test that string literals escape quotes."""
        formula = compile_filter_tree(condition("Name", "equals", 'say "hi"'), task_fields)
        assert formula == '{Name} = "say \\"hi\\""'

    def test_unknown_operator(self):
        """Test that unknown operators are rejected."""
        with pytest.raises(InvalidFilterError):
            compile_filter_tree(condition("Name", "resembles", "x"))


class TestCompileDates:
    """Tests for date conditions."""

    def test_on_concrete_day(self, task_fields):
        """Test 'on' compiles to a half-open day interval."""
        formula = compile_filter_tree(condition("Due Date", "on", "2024-01-17"), task_fields)
        assert formula == '({Due Date} >= "2024-01-17") AND ({Due Date} < "2024-01-18")'

    def test_on_today_stays_dynamic(self, task_fields):
        """Test the today placeholder compiles to TODAY() arithmetic."""
        formula = compile_filter_tree(condition("Due Date", "is_today"), task_fields)
        assert formula == (
            '({Due Date} >= TODAY()) AND ({Due Date} < DATEADD(TODAY(), 1, "days"))'
        )

    def test_before_and_after(self, task_fields):
        """Test before/after day boundaries."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Due Date", "before", "2024-01-17")) == (
            '{Due Date} < "2024-01-17"'
        )
        assert compiler.compile(condition("Due Date", "after", "2024-01-17")) == (
            '{Due Date} >= "2024-01-18"'
        )
        assert compiler.compile(condition("Due Date", "date_overdue")) == "{Due Date} < TODAY()"

    def test_comparisons_on_date_field(self, task_fields):
        """Test equals/gt on a date field use day semantics."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Due Date", "equals", "2024-01-17")) == (
            '({Due Date} >= "2024-01-17") AND ({Due Date} < "2024-01-18")'
        )
        assert compiler.compile(condition("Due Date", "lte", "2024-01-17")) == (
            '{Due Date} < "2024-01-18"'
        )

    def test_date_range(self, task_fields):
        """Test in_range on a date field includes both end days."""
        formula = compile_filter_tree(
            condition("Due Date", "date_range", {"start": "2024-01-01", "end": "2024-01-31"}),
            task_fields,
        )
        assert formula == '({Due Date} >= "2024-01-01") AND ({Due Date} < "2024-02-01")'

    def test_missing_date_never_matches(self, task_fields):
        """Test a day condition without a usable date compiles to FALSE."""
        assert compile_filter_tree(condition("Due Date", "on", None), task_fields) == "FALSE"

    def test_last_calendar_day_never_matches(self, task_fields):
        """Test a day condition whose next day overflows the calendar compiles to FALSE."""
        compiler = FilterCompiler(task_fields)
        assert compiler.compile(condition("Due Date", "on", "9999-12-31")) == "FALSE"
        assert compiler.compile(condition("Due Date", "after", "9999-12-31")) == "FALSE"
        assert compiler.compile(condition("Due Date", "before", "9999-12-31")) == (
            '{Due Date} < "9999-12-31"'
        )


class TestCompileAndEvaluate:
    """Tests that compiled formulas evaluate as the filter intends."""

    def test_equals_round_trip(self, task_fields, task_row):
        """Test a compiled equality matches the row."""
        formula = compile_filter_tree(condition("Status", "equals", "done"), task_fields)
        context = EvaluationContext.build(task_row, task_fields)
        assert evaluate_formula(formula, context) is True
        context = EvaluationContext.build({**task_row, "Status": "todo"}, task_fields)
        assert evaluate_formula(formula, context) is False

    def test_today_round_trip(self, fixed_now, task_fields, task_row):
        """Test 'on today' matches a row due on the pinned day."""
        formula = compile_filter_tree(condition("Due Date", "on", dates.TODAY), task_fields)
        context = EvaluationContext.build(task_row, task_fields)
        assert evaluate_formula(formula, context) is True
        context = EvaluationContext.build({**task_row, "Due Date": "2024-01-18"}, task_fields)
        assert evaluate_formula(formula, context) is False

    def test_multi_value_round_trip(self, task_fields, task_row):
        """Test whole-item matching on a multi-value field."""
        context = EvaluationContext.build(task_row, task_fields)
        hit = compile_filter_tree(condition("Tags", "contains", "finance"), task_fields)
        miss = compile_filter_tree(condition("Tags", "contains", "fin"), task_fields)
        assert evaluate_formula(hit, context) is True
        assert evaluate_formula(miss, context) is False

    def test_multi_value_contains_ignores_case(self, task_fields, task_row):
        """Test contains on a multi-value field matches items in any case."""
        context = EvaluationContext.build(task_row, task_fields)
        hit = compile_filter_tree(condition("Tags", "contains", "URGENT"), task_fields)
        miss = compile_filter_tree(condition("Tags", "not_contains", "Finance"), task_fields)
        assert evaluate_formula(hit, context) is True
        assert evaluate_formula(miss, context) is False

    def test_blank_field_contains(self, task_fields):
        """Test contains on a blank field is false, not an error."""
        formula = compile_filter_tree(condition("Owner", "contains", "a"), task_fields)
        assert evaluate_formula(formula, EvaluationContext.build({}, task_fields)) is False


class TestLiterals:
    """Tests for literal rendering helpers."""

    def test_escape_string(self):
        """Test backslashes, quotes and newlines are escaped."""
        assert escape_string('a\\b"c\nd') == 'a\\\\b\\"c\\nd'

    def test_format_literal(self):
        """Test rendering of Python values as literals."""
        assert format_literal(None) == '""'
        assert format_literal(True) == "TRUE"
        assert format_literal(2.0) == "2"
        assert format_literal("x") == '"x"'
        assert format_literal(dates.TOMORROW) == (
            'DATETIME_FORMAT(DATEADD(TODAY(), 1, "days"), "YYYY-MM-DD")'
        )
