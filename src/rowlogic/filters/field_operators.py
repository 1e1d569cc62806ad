"""Field-aware filter operators.

Defines which operators are offered for each field type, with their labels,
so filter builders only present operators the compiler renders sensibly
for that type.
"""

from dataclasses import dataclass

from rowlogic.schemas.field import (
    DATE_FIELD_TYPES,
    MULTI_VALUE_FIELD_TYPES,
    NUMERIC_FIELD_TYPES,
    FieldType,
)
from rowlogic.schemas.filter import FilterOperator


@dataclass(frozen=True)
class OperatorOption:
    """An operator as offered to users for one field type."""

    value: FilterOperator
    label: str
    requires_value: bool = True
    supports_multi_value: bool = False


_IS_EMPTY = OperatorOption(FilterOperator.IS_EMPTY, "Is empty", requires_value=False)
_IS_NOT_EMPTY = OperatorOption(FilterOperator.IS_NOT_EMPTY, "Is not empty", requires_value=False)

_TEXT_OPERATORS = (
    OperatorOption(FilterOperator.CONTAINS, "Contains"),
    OperatorOption(FilterOperator.NOT_CONTAINS, "Does not contain"),
    OperatorOption(FilterOperator.EQUALS, "Is exactly"),
    OperatorOption(FilterOperator.NOT_EQUALS, "Is not exactly"),
    OperatorOption(FilterOperator.STARTS_WITH, "Starts with"),
    OperatorOption(FilterOperator.ENDS_WITH, "Ends with"),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)

_NUMBER_OPERATORS = (
    OperatorOption(FilterOperator.EQUALS, "Equals"),
    OperatorOption(FilterOperator.NOT_EQUALS, "Does not equal"),
    OperatorOption(FilterOperator.GREATER_THAN, "Greater than"),
    OperatorOption(FilterOperator.GREATER_THAN_OR_EQUAL, "Greater than or equal"),
    OperatorOption(FilterOperator.LESS_THAN, "Less than"),
    OperatorOption(FilterOperator.LESS_THAN_OR_EQUAL, "Less than or equal"),
    OperatorOption(FilterOperator.IN_RANGE, "Is between"),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)

_DATE_OPERATORS = (
    OperatorOption(FilterOperator.ON, "Is"),
    OperatorOption(FilterOperator.BEFORE, "Before"),
    OperatorOption(FilterOperator.AFTER, "After"),
    OperatorOption(FilterOperator.ON_OR_BEFORE, "On or before"),
    OperatorOption(FilterOperator.ON_OR_AFTER, "On or after"),
    OperatorOption(FilterOperator.IN_RANGE, "Is within"),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)

_SINGLE_SELECT_OPERATORS = (
    OperatorOption(FilterOperator.EQUALS, "Is"),
    OperatorOption(FilterOperator.NOT_EQUALS, "Is not"),
    OperatorOption(FilterOperator.IN, "Is any of", supports_multi_value=True),
    OperatorOption(FilterOperator.NOT_IN, "Is none of", supports_multi_value=True),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)

_MULTI_VALUE_OPERATORS = (
    OperatorOption(FilterOperator.CONTAINS, "Contains"),
    OperatorOption(FilterOperator.NOT_CONTAINS, "Does not contain"),
    OperatorOption(FilterOperator.IN, "Has any of", supports_multi_value=True),
    OperatorOption(FilterOperator.NOT_IN, "Has none of", supports_multi_value=True),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)

_CHECKBOX_OPERATORS = (
    OperatorOption(FilterOperator.EQUALS, "Is"),
    OperatorOption(FilterOperator.NOT_EQUALS, "Is not"),
)

_DEFAULT_OPERATORS = (
    OperatorOption(FilterOperator.EQUALS, "Equals"),
    OperatorOption(FilterOperator.NOT_EQUALS, "Does not equal"),
    _IS_EMPTY,
    _IS_NOT_EMPTY,
)


def get_operators_for_field_type(field_type: str) -> list[OperatorOption]:
    """Operators offered for a field type; unknown types get a basic set."""
    field_type = str(getattr(field_type, "value", field_type)).lower()

    if field_type in (FieldType.TEXT.value, FieldType.LONG_TEXT.value, FieldType.URL.value,
                      FieldType.EMAIL.value, FieldType.PHONE.value):
        return list(_TEXT_OPERATORS)
    if field_type in NUMERIC_FIELD_TYPES:
        return list(_NUMBER_OPERATORS)
    if field_type in DATE_FIELD_TYPES:
        return list(_DATE_OPERATORS)
    if field_type == FieldType.SINGLE_SELECT.value:
        return list(_SINGLE_SELECT_OPERATORS)
    if field_type in MULTI_VALUE_FIELD_TYPES:
        return list(_MULTI_VALUE_OPERATORS)
    if field_type == FieldType.CHECKBOX.value:
        return list(_CHECKBOX_OPERATORS)
    return list(_DEFAULT_OPERATORS)


def is_operator_valid_for_field(field_type: str, operator: FilterOperator | str) -> bool:
    """Check if an operator is offered for a field type."""
    operator = str(getattr(operator, "value", operator))
    return any(option.value.value == operator for option in get_operators_for_field_type(field_type))


def get_default_operator_for_field_type(field_type: str) -> FilterOperator:
    """First operator offered for a field type."""
    operators = get_operators_for_field_type(field_type)
    return operators[0].value if operators else FilterOperator.EQUALS
