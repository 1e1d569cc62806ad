"""Lark terminal grammar for formula tokens.

Only the lexer of this grammar is used: the recursive-descent parser in
:mod:`rowlogic.formula.parser` consumes the token stream. The single
``start`` rule exists because Lark requires one.

Supported lexemes:
- Numbers: ``42``, ``3.14``, ``.5``, ``1e3`` (sign is a unary operator)
- Strings: single or double quoted, backslash escapes
- Field references: ``{Field Name}`` or a bare identifier
- Identifiers: function names, ``TRUE``/``FALSE``, ``AND``/``OR``/``NOT``
- Operators: ``+ - * / & = <> != < > <= >=``
- Punctuation: ``( ) ,``
"""

FORMULA_TOKEN_GRAMMAR = r"""
    start: _token*

    _token: NUMBER
        | STRING
        | FIELD_REF
        | IDENTIFIER
        | OPERATOR
        | PUNCTUATION

    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    STRING: /"(?:[^"\\]|\\.)*"/s | /'(?:[^'\\]|\\.)*'/s

    FIELD_REF: /\{[^{}]*\}/

    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/

    // Two-character operators first so the alternation matches longest
    OPERATOR: /<>|<=|>=|!=|[-+*\/&=<>]/

    PUNCTUATION: /[(),]/

    %import common.WS
    %ignore WS
"""
