"""Lexer for the Glint language.

Tokens are produced by a Lark lexer built from the terminal definitions
in `GLINT_TERMINALS`. Only the lexing half of Lark is used: the grammar's
single rule exists so that every terminal is kept, and `Lark.lex` gives
us a lazy stream that we translate into Glint `Token` objects.

Keywords are declared as string terminals. Because each keyword is also
matched by the IDENT pattern, Lark retypes an identifier whose text is a
keyword, so ``let`` becomes LET while ``letter`` stays IDENT. Operators
sharing a prefix (``=``/``==``, ``<``/``<=``...) are resolved by longest
match.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Iterator, List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import LexError
from .types import ErrorVal


class TokenType(Enum):
    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    DOT = auto()
    SEMICOLON = auto()
    # Operators
    MINUS = auto()
    PLUS = auto()
    SLASH = auto()
    STAR = auto()
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    # Literals
    IDENT = auto()
    STRING = auto()
    NUMBER = auto()
    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FN = auto()
    FOR = auto()
    IF = auto()
    LET = auto()
    NULL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SELF = auto()
    SUPER = auto()
    TRUE = auto()
    WHILE = auto()
    # Sentinel
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any
    line: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"


KEYWORDS = frozenset({
    TokenType.AND, TokenType.CLASS, TokenType.ELSE, TokenType.FALSE,
    TokenType.FN, TokenType.FOR, TokenType.IF, TokenType.LET, TokenType.NULL,
    TokenType.OR, TokenType.PRINT, TokenType.RETURN, TokenType.SELF,
    TokenType.SUPER, TokenType.TRUE, TokenType.WHILE,
})


GLINT_TERMINALS = r"""
    start: _token*
    _token: LPAR | RPAR | LBRACE | RBRACE | COMMA | DOT | SEMICOLON
          | MINUS | PLUS | SLASH | STAR
          | BANG | BANG_EQUAL | EQUAL | EQUAL_EQUAL
          | GREATER | GREATER_EQUAL | LESS | LESS_EQUAL
          | IDENT | STRING | NUMBER
          | AND | CLASS | ELSE | FALSE | FN | FOR | IF | LET | NULL
          | OR | PRINT | RETURN | SELF | SUPER | TRUE | WHILE

    LPAR: "("
    RPAR: ")"
    LBRACE: "{"
    RBRACE: "}"
    COMMA: ","
    DOT: "."
    SEMICOLON: ";"
    MINUS: "-"
    PLUS: "+"
    SLASH: "/"
    STAR: "*"
    BANG: "!"
    BANG_EQUAL: "!="
    EQUAL: "="
    EQUAL_EQUAL: "=="
    GREATER: ">"
    GREATER_EQUAL: ">="
    LESS: "<"
    LESS_EQUAL: "<="

    AND: "and"
    CLASS: "class"
    ELSE: "else"
    FALSE: "false"
    FN: "fn"
    FOR: "for"
    IF: "if"
    LET: "let"
    NULL: "null"
    OR: "or"
    PRINT: "print"
    RETURN: "return"
    SELF: "self"
    SUPER: "super"
    TRUE: "true"
    WHILE: "while"

    IDENT: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /[0-9]+(\.[0-9]+)?/
    STRING: /"[^"]*"/

    // Comments
    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""


GLINT_LEXER = Lark(
    GLINT_TERMINALS,
    parser='lalr',
    lexer='basic',
)


def _literal(token_type: TokenType, text: str) -> Any:
    if token_type is TokenType.NUMBER:
        return float(text)
    if token_type is TokenType.STRING:
        return text[1:-1]
    return None


def tokenize(source: str) -> Iterator[Token]:
    """Lazily convert Glint source text into Tokens.

    The stream always ends with a single EOF token. Lexing stops at the
    first malformed token: a LexError is raised when iteration reaches
    it, so tokens before the error have already been produced.
    """
    try:
        for tok in GLINT_LEXER.lex(source):
            token_type = TokenType[tok.type]
            yield Token(token_type, str(tok), _literal(token_type, str(tok)), tok.line)
    except UnexpectedCharacters as e:
        if e.char == '"':
            raise LexError(ErrorVal('LexError', 'Unterminated string.', e.line)) from None
        raise LexError(ErrorVal('LexError', f'Unexpected character {e.char!r}.', e.line)) from None
    yield Token(TokenType.EOF, '', None, source.count('\n') + 1)


def scan(source: str) -> List[Token]:
    """Tokenize the whole source eagerly."""
    return list(tokenize(source))
