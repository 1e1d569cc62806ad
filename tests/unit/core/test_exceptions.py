"""Unit tests for the exception hierarchy."""

from rowlogic.core.exceptions import (
    FilterException,
    FormulaDepthError,
    FormulaException,
    FormulaSyntaxError,
    InvalidFilterError,
    LexError,
    RowLogicException,
)


class TestExceptions:
    """Tests for rowlogic exceptions."""

    def test_formula_errors(self):
        """Test formula errors carry their position."""
        error = FormulaSyntaxError("Unexpected token ')'", 4)
        assert isinstance(error, FormulaException)
        assert error.position == 4
        assert error.message == "Unexpected token ')' at position 4"
        assert error.status_code == 422
        assert error.to_dict() == {
            "error": {
                "code": "FORMULA_SYNTAX_ERROR",
                "message": "Unexpected token ')' at position 4",
                "details": {"position": 4},
            }
        }

    def test_lex_error(self):
        """Test LexError is a formula error."""
        error = LexError("Unterminated string", 0)
        assert isinstance(error, FormulaException)
        assert error.code == "FORMULA_LEX_ERROR"

    def test_depth_error(self):
        """Test FormulaDepthError is a syntax error with the limit recorded."""
        error = FormulaDepthError(8, 12)
        assert isinstance(error, FormulaSyntaxError)
        assert error.code == "FORMULA_TOO_DEEP"
        assert error.details == {"position": 12, "max_depth": 8}

    def test_invalid_filter(self):
        """Test InvalidFilterError records the offending node."""
        error = InvalidFilterError("Unknown filter operator", {"operator": "x"})
        assert isinstance(error, FilterException)
        assert isinstance(error, RowLogicException)
        assert error.status_code == 400
        assert error.details == {"node": "{'operator': 'x'}"}
        assert InvalidFilterError("bad").details == {}
