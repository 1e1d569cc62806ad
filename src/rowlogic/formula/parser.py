"""Formula parser for rowlogic.

Recursive-descent parser over the token stream produced by
:func:`rowlogic.formula.tokenizer.tokenize`.

Precedence, loosest first::

    OR
    AND
    =  <>  !=  <  >  <=  >=
    +  -  &
    *  /
    unary -  +  NOT
    literal, field reference, function call, ( expression )
"""

from dataclasses import dataclass
from typing import Any, Union

from rowlogic.core.config import settings
from rowlogic.core.exceptions import FormulaDepthError, FormulaException, FormulaSyntaxError
from rowlogic.formula.tokenizer import Token, TokenKind, tokenize


# AST Node types
@dataclass(frozen=True)
class LiteralNode:
    value: Any


@dataclass(frozen=True)
class FieldRefNode:
    field_name: str


@dataclass(frozen=True)
class FunctionCallNode:
    name: str
    arguments: tuple["Node", ...]


@dataclass(frozen=True)
class BinaryOpNode:
    operator: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class UnaryOpNode:
    operator: str
    operand: "Node"


Node = Union[LiteralNode, FieldRefNode, FunctionCallNode, BinaryOpNode, UnaryOpNode]

COMPARISON_OPERATORS = frozenset({"=", "<>", "<", ">", "<=", ">="})
ADDITIVE_OPERATORS = frozenset({"+", "-", "&"})
MULTIPLICATIVE_OPERATORS = frozenset({"*", "/"})

_KEYWORD_LITERALS = {"TRUE": True, "FALSE": False}


class _Parser:
    """Single-use parser state over one token list."""

    def __init__(self, tokens: list[Token], max_depth: int) -> None:
        if not tokens or tokens[-1].kind is not TokenKind.END:
            end = tokens[-1].position if tokens else 0
            tokens = [*tokens, Token(TokenKind.END, "", end)]
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._max_depth = max_depth

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._current
        if token.kind is not TokenKind.END:
            self._pos += 1
        return token

    def _is_keyword(self, token: Token, keyword: str) -> bool:
        return (
            token.kind is TokenKind.IDENTIFIER
            and not token.is_field_ref
            and token.text.upper() == keyword
        )

    def _expect_punctuation(self, text: str) -> Token:
        token = self._current
        if not token.matches(TokenKind.PUNCTUATION, text):
            raise self._unexpected(token, expected=text)
        return self._advance()

    def _unexpected(self, token: Token, expected: str | None = None) -> FormulaSyntaxError:
        if token.kind is TokenKind.END:
            message = "Unexpected end of formula"
        else:
            message = f"Unexpected token {token.text!r}"
        if expected:
            message += f", expected {expected!r}"
        return FormulaSyntaxError(message, token.position)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self._max_depth:
            raise FormulaDepthError(self._max_depth, self._current.position)

    def _leave(self) -> None:
        self._depth -= 1

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def parse(self) -> Node:
        if self._current.kind is TokenKind.END:
            raise FormulaSyntaxError("Empty formula", self._current.position)
        node = self._expression()
        if self._current.kind is not TokenKind.END:
            token = self._current
            if token.matches(TokenKind.PUNCTUATION, ")"):
                raise FormulaSyntaxError("Unbalanced parenthesis", token.position)
            raise FormulaSyntaxError(f"Unexpected trailing token {token.text!r}", token.position)
        return node

    def _expression(self) -> Node:
        self._enter()
        try:
            return self._or()
        finally:
            self._leave()

    def _or(self) -> Node:
        node = self._and()
        while self._is_keyword(self._current, "OR"):
            self._advance()
            node = BinaryOpNode("OR", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._comparison()
        while self._is_keyword(self._current, "AND"):
            self._advance()
            node = BinaryOpNode("AND", node, self._comparison())
        return node

    def _comparison(self) -> Node:
        node = self._additive()
        while self._current.kind is TokenKind.OPERATOR and (
            self._current.text in COMPARISON_OPERATORS or self._current.text == "!="
        ):
            op = self._advance().text
            if op == "!=":
                op = "<>"
            node = BinaryOpNode(op, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._multiplicative()
        while self._current.kind is TokenKind.OPERATOR and self._current.text in ADDITIVE_OPERATORS:
            op = self._advance().text
            node = BinaryOpNode(op, node, self._multiplicative())
        return node

    def _multiplicative(self) -> Node:
        node = self._unary()
        while (
            self._current.kind is TokenKind.OPERATOR
            and self._current.text in MULTIPLICATIVE_OPERATORS
        ):
            op = self._advance().text
            node = BinaryOpNode(op, node, self._unary())
        return node

    def _unary(self) -> Node:
        token = self._current
        if token.matches(TokenKind.OPERATOR, "-") or token.matches(TokenKind.OPERATOR, "+"):
            op = "-" if token.text == "-" else "+"
        elif self._is_keyword(token, "NOT") and not self._peek().matches(TokenKind.END):
            op = "NOT"
        else:
            return self._primary()

        self._advance()
        self._enter()
        try:
            operand = self._unary()
        finally:
            self._leave()
        if op == "+":
            return operand
        return UnaryOpNode(op, operand)

    def _primary(self) -> Node:
        token = self._current

        if token.kind is TokenKind.NUMBER:
            self._advance()
            return LiteralNode(_number_value(token.text))

        if token.kind is TokenKind.STRING:
            self._advance()
            return LiteralNode(token.text)

        if token.matches(TokenKind.PUNCTUATION, "("):
            self._advance()
            node = self._expression()
            if not self._current.matches(TokenKind.PUNCTUATION, ")"):
                raise FormulaSyntaxError("Unbalanced parenthesis", token.position)
            self._advance()
            return node

        if token.kind is TokenKind.IDENTIFIER:
            self._advance()
            if token.is_field_ref:
                return FieldRefNode(token.text[1:-1].strip())
            if self._current.matches(TokenKind.PUNCTUATION, "("):
                return FunctionCallNode(token.text, self._arguments())
            keyword = token.text.upper()
            if keyword in _KEYWORD_LITERALS:
                return LiteralNode(_KEYWORD_LITERALS[keyword])
            if keyword in ("AND", "OR", "NOT"):
                raise self._unexpected(token)
            return FieldRefNode(token.text)

        raise self._unexpected(token)

    def _arguments(self) -> tuple[Node, ...]:
        self._expect_punctuation("(")
        args: list[Node] = []
        if self._current.matches(TokenKind.PUNCTUATION, ")"):
            self._advance()
            return ()
        while True:
            args.append(self._expression())
            if self._current.matches(TokenKind.PUNCTUATION, ","):
                self._advance()
                continue
            self._expect_punctuation(")")
            return tuple(args)


def _number_value(text: str) -> int | float:
    value = float(text)
    # Keep as int if written without decimals or exponent
    if value.is_integer() and not any(c in text for c in ".eE"):
        return int(text)
    return value


def parse(tokens: list[Token], max_depth: int | None = None) -> Node:
    """
    Parse a token list into an AST.

    Args:
        tokens: Output of :func:`tokenize`
        max_depth: Nesting limit, defaults to ``settings.formula_max_depth``

    Raises:
        FormulaSyntaxError: If the tokens do not form a valid formula
    """
    return _Parser(tokens, max_depth or settings.formula_max_depth).parse()


class FormulaParser:
    """
    Parser for rowlogic formulas.

    Tokenizes and parses formula strings into an AST that can be evaluated.
    """

    def __init__(self, max_depth: int | None = None):
        self.max_depth = max_depth or settings.formula_max_depth

    def parse(self, formula: str) -> Node:
        """
        Parse a formula string into an AST.

        Args:
            formula: Formula string to parse

        Returns:
            AST root node

        Raises:
            LexError: On unterminated strings or unknown characters
            FormulaSyntaxError: If formula syntax is invalid
        """
        return parse(tokenize(formula), self.max_depth)

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax.

        Args:
            formula: Formula string to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except FormulaException as e:
            return False, e.message

    def get_field_references(self, formula: str) -> list[str]:
        """
        Extract all field references from a formula.

        Args:
            formula: Formula string

        Returns:
            Field names referenced in the formula, in first-seen order
        """
        ast = self.parse(formula)
        return list(dict.fromkeys(self._collect_fields(ast)))

    def _collect_fields(self, root: Node) -> list[str]:
        """Collect field references from an AST, left to right."""
        # Explicit stack: long operator chains build deep left spines
        fields: list[str] = []
        stack: list[Node] = [root]
        while stack:
            node = stack.pop()
            if isinstance(node, FieldRefNode):
                fields.append(node.field_name)
            elif isinstance(node, BinaryOpNode):
                stack.append(node.right)
                stack.append(node.left)
            elif isinstance(node, UnaryOpNode):
                stack.append(node.operand)
            elif isinstance(node, FunctionCallNode):
                stack.extend(reversed(node.arguments))
        return fields
