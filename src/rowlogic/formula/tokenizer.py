"""Formula tokenizer.

Turns formula source into a flat list of :class:`Token` objects using
the Lark lexer built from :data:`FORMULA_TOKEN_GRAMMAR`. Whitespace is
dropped and an ``END`` token is always appended.
"""

from dataclasses import dataclass
from enum import Enum

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from rowlogic.core.exceptions import LexError
from rowlogic.formula.grammar import FORMULA_TOKEN_GRAMMAR


class TokenKind(str, Enum):
    """Token categories."""

    NUMBER = "number"
    STRING = "string"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    END = "end"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int

    @property
    def is_field_ref(self) -> bool:
        """Braced ``{Field Name}`` identifiers are always field references."""
        return self.kind is TokenKind.IDENTIFIER and self.text.startswith("{")

    def matches(self, kind: TokenKind, text: str | None = None) -> bool:
        if self.kind is not kind:
            return False
        return text is None or self.text == text


_KIND_BY_TERMINAL = {
    "NUMBER": TokenKind.NUMBER,
    "STRING": TokenKind.STRING,
    "FIELD_REF": TokenKind.IDENTIFIER,
    "IDENTIFIER": TokenKind.IDENTIFIER,
    "OPERATOR": TokenKind.OPERATOR,
    "PUNCTUATION": TokenKind.PUNCTUATION,
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

# Built once; lexing keeps its state per call
_lexer = Lark(FORMULA_TOKEN_GRAMMAR, parser="lalr", lexer="basic")


def unescape_string(literal: str) -> str:
    """Strip the quotes from a string literal and resolve backslash escapes."""
    body = literal[1:-1]
    if "\\" not in body:
        return body

    chars: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            i += 1
            chars.append(_ESCAPES.get(body[i], body[i]))
        else:
            chars.append(char)
        i += 1
    return "".join(chars)


def tokenize(source: str) -> list[Token]:
    """
    Tokenize formula source.

    Args:
        source: Formula text

    Returns:
        Tokens in source order, terminated by an ``END`` token

    Raises:
        LexError: On an unterminated string or an unrecognized character
    """
    tokens: list[Token] = []
    try:
        for lark_token in _lexer.lex(source):
            kind = _KIND_BY_TERMINAL[lark_token.type]
            text = str(lark_token)
            if kind is TokenKind.STRING:
                text = unescape_string(text)
            tokens.append(Token(kind, text, lark_token.start_pos))
    except UnexpectedCharacters as e:
        position = e.pos_in_stream
        char = source[position] if position < len(source) else ""
        if char in ("'", '"'):
            raise LexError("Unterminated string literal", position) from e
        if char == "{":
            raise LexError("Unterminated field reference", position) from e
        raise LexError(f"Unexpected character {char!r}", position) from e

    tokens.append(Token(TokenKind.END, "", len(source)))
    return tokens
