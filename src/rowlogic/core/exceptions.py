"""
Custom exceptions for rowlogic.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information. None of these escape the
public evaluation entry points: they are converted to error values
(or to ``False`` for boolean consumers) at the call boundary.
"""

from typing import Any


class RowLogicException(Exception):
    """
    Base exception for all rowlogic errors.

    All custom exceptions should inherit from this class.
    """

    # Default status code for base exception
    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 422 - Formula Errors
# =============================================================================


class FormulaException(RowLogicException):
    """Formula could not be tokenized or parsed."""

    status_code = 422


class LexError(FormulaException):
    """Unterminated string or unrecognized character in formula source."""

    def __init__(self, message: str, position: int) -> None:
        self.position = position
        super().__init__(
            message=f"{message} at position {position}",
            code="FORMULA_LEX_ERROR",
            details={"position": position},
        )


class FormulaSyntaxError(FormulaException):
    """Unexpected token, unbalanced parentheses or trailing input."""

    def __init__(self, message: str, position: int) -> None:
        self.position = position
        super().__init__(
            message=f"{message} at position {position}",
            code="FORMULA_SYNTAX_ERROR",
            details={"position": position},
        )


class FormulaDepthError(FormulaSyntaxError):
    """Formula nests deeper than the configured parser limit."""

    def __init__(self, max_depth: int, position: int) -> None:
        super().__init__(f"Formula nesting exceeds maximum depth of {max_depth}", position)
        self.code = "FORMULA_TOO_DEEP"
        self.details["max_depth"] = max_depth


# =============================================================================
# HTTP 400 - Filter Errors
# =============================================================================


class FilterException(RowLogicException):
    """Filter definition problem."""

    status_code = 400


class InvalidFilterError(FilterException):
    """Filter tree has an unrecognized shape or operator."""

    def __init__(self, message: str, node: Any = None) -> None:
        super().__init__(
            message=message,
            code="INVALID_FILTER",
            details={"node": str(node)[:200]} if node is not None else {},
        )
