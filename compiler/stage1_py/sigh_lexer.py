#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional


# ==========================
# Tokens and lexer
# ==========================

class TokenKind(Enum):
    # Special
    EOF = auto()

    IDENT = auto()  # identifier, e.g. x, Point, get_age
    INT = auto()  # integer literal, e.g. 42, -7
    FLOAT = auto()  # float literal, e.g. 1.5, -0.25
    STRING = auto()  # string literal, e.g. "hello"

    # Keywords
    VAR = auto()
    FUN = auto()
    TEMPLATE = auto()
    STRUCT = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    RETURN = auto()
    CREATE = auto()
    CLASS = auto()
    FROM = auto()

    # Punctuation / operators
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COMMA = auto()  # ,
    COLON = auto()  # :
    DOT = auto()  # .
    DOLLAR = auto()  # $
    EQ = auto()  # =
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    PERCENT = auto()  # %
    LT = auto()  # <
    GT = auto()  # >
    LE = auto()  # <=
    GE = auto()  # >=
    EQEQ = auto()  # ==
    NE = auto()  # !=
    ANDAND = auto()  # &&
    OROR = auto()  # ||
    BANG = auto()  # !


KEYWORDS = {
    "var": TokenKind.VAR,
    "fun": TokenKind.FUN,
    "template": TokenKind.TEMPLATE,
    "struct": TokenKind.STRUCT,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "return": TokenKind.RETURN,
    "create": TokenKind.CREATE,
    "class": TokenKind.CLASS,
    "from": TokenKind.FROM,
}

# Visibility markers are plain identifiers resolved in the root scope.
MODIFIERS = ("pub", "pvt")

_SINGLE_CHAR_TOKENS = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
    "$": TokenKind.DOLLAR,
    "+": TokenKind.PLUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
}

_STRING_ESCAPES = {"\\": "\\", "n": "\n", "r": "\r", "t": "\t", '"': '"'}

# After one of these, '-' is the subtraction operator, never the sign of a literal.
_OPERAND_END_KINDS = frozenset({
    TokenKind.IDENT, TokenKind.INT, TokenKind.FLOAT, TokenKind.STRING, TokenKind.RPAREN, TokenKind.RBRACKET,
})


@dataclass
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"{self.text!r}" if self.kind != TokenKind.EOF else "end-of-file"


@dataclass
class LexerError(Exception):
    message: str
    filename: str
    line: int
    column: int


def is_reserved_keyword(word: str) -> bool:
    return word in KEYWORDS


class Lexer:
    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.length = len(source)
        self.index = 0
        self.line = 1
        self.column = 1
        self._prev_kind: Optional[TokenKind] = None

    @classmethod
    def from_source(cls, source: str) -> "Lexer":
        return cls(source)

    # --- low-level char utilities ---

    def _at_end(self) -> bool:
        return self.index >= self.length

    def _peek(self) -> str:
        if self._at_end():
            return "\0"
        return self.source[self.index]

    def _peek_next(self) -> str:
        if self.index + 1 >= self.length:
            return "\0"
        return self.source[self.index + 1]

    def _advance(self) -> str:
        c = self._peek()
        if not self._at_end():
            self.index += 1
            if c == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return c

    # --- main API ---

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            tok = self._next_token()
            tokens.append(tok)
            self._prev_kind = tok.kind
            if tok.kind is TokenKind.EOF:
                break
        return tokens

    def _next_token(self) -> Token:
        self._skip_ws_and_comments()
        start_line, start_col = self.line, self.column

        if self._at_end():
            return Token(TokenKind.EOF, "", start_line, start_col)

        c = self._advance()

        # identifiers / keywords
        if c.isalpha() or c == "_":
            ident = [c]
            while self._peek().isalnum() or self._peek() == "_":
                ident.append(self._advance())
            text = "".join(ident)
            return Token(KEYWORDS.get(text, TokenKind.IDENT), text, start_line, start_col)

        # numbers
        if c.isdigit():
            return self._read_number(c, start_line, start_col)

        # strings
        if c == '"':
            text = self._read_string_literal(start_line, start_col)
            return Token(TokenKind.STRING, text, start_line, start_col)

        # punctuation / operators with lookahead

        if c == "-":
            if self._peek().isdigit() and self._prev_kind not in _OPERAND_END_KINDS:
                return self._read_number(self._advance(), start_line, start_col, is_negative=True)
            return Token(TokenKind.MINUS, c, start_line, start_col)

        kind = _SINGLE_CHAR_TOKENS.get(c)
        if kind is not None:
            return Token(kind, c, start_line, start_col)

        if c == "=":
            if self._peek() == "=":
                self._advance()
                return Token(TokenKind.EQEQ, "==", start_line, start_col)
            return Token(TokenKind.EQ, c, start_line, start_col)

        if c == "!":
            if self._peek() == "=":
                self._advance()
                return Token(TokenKind.NE, "!=", start_line, start_col)
            return Token(TokenKind.BANG, c, start_line, start_col)

        if c == "<":
            if self._peek() == "=":
                self._advance()
                return Token(TokenKind.LE, "<=", start_line, start_col)
            return Token(TokenKind.LT, c, start_line, start_col)

        if c == ">":
            if self._peek() == "=":
                self._advance()
                return Token(TokenKind.GE, ">=", start_line, start_col)
            return Token(TokenKind.GT, c, start_line, start_col)

        if c == "&":
            if self._peek() == "&":
                self._advance()
                return Token(TokenKind.ANDAND, "&&", start_line, start_col)
            raise LexerError("[LEX-0041] single '&' is not an operator, did you mean '&&'?", self.filename,
                             start_line, start_col)

        if c == "|":
            if self._peek() == "|":
                self._advance()
                return Token(TokenKind.OROR, "||", start_line, start_col)
            raise LexerError("[LEX-0042] single '|' is not an operator, did you mean '||'?", self.filename,
                             start_line, start_col)

        raise LexerError(f"[LEX-0040] unexpected character {c!r} at {start_line}:{start_col}", self.filename,
                         start_line, start_col)

    def _read_string_literal(self, start_line: int, start_col: int) -> str:
        chars: List[str] = []
        while True:
            ch = self._peek()

            if ch == "\0" or ch == "\n":
                raise LexerError("[LEX-0010] unterminated string literal", self.filename, start_line, start_col)
            if ch == "\\":
                self._advance()
                esc = self._peek()
                if esc not in _STRING_ESCAPES:
                    raise LexerError(f"[LEX-0059] unknown escape sequence \\{esc}", self.filename, self.line,
                                     self.column)
                self._advance()
                chars.append(_STRING_ESCAPES[esc])
                continue
            if ch == '"':
                self._advance()
                break

            chars.append(self._advance())

        return "".join(chars)

    def _read_number(self, c: str, start_line: int, start_col: int, is_negative: bool = False) -> Token:
        digits = [c]
        while self._peek().isdigit():
            digits.append(self._advance())
        kind = TokenKind.INT
        if self._peek() == "." and self._peek_next().isdigit():
            kind = TokenKind.FLOAT
            digits.append(self._advance())
            while self._peek().isdigit():
                digits.append(self._advance())
        text = "".join(digits)
        if is_negative:
            text = "-" + text
        if self._peek().isalpha() or self._peek() == "_":
            raise LexerError(f"[LEX-0061] invalid character '{self._peek()}' after numeric literal",
                             self.filename, self.line, self.column)
        if kind is TokenKind.INT and len(text.lstrip("-")) > 1 and text.lstrip("-").startswith("0"):
            raise LexerError(f"[LEX-0062] integer literal '{text}' has a leading zero",
                             self.filename, start_line, start_col)
        return Token(kind, text, start_line, start_col)

    def _skip_ws_and_comments(self) -> None:
        while True:
            c = self._peek()
            # ';' is a statement separator with no meaning: treated as whitespace
            if c in (" ", "\t", "\r", "\n", ";"):
                self._advance()
                continue
            if c == "/" and self._peek_next() == "/":
                # line comment
                self._advance()  # '/'
                self._advance()  # second '/'
                while self._peek() not in ("\n", "\0"):
                    self._advance()
                continue
            if c == "/" and self._peek_next() == "*":
                # block comment
                self._advance()  # '/'
                self._advance()  # '*'
                while True:
                    if self._at_end():
                        raise LexerError("[LEX-0070] unterminated block comment", self.filename, self.line,
                                         self.column)
                    if self._peek() == "*" and self._peek_next() == "/":
                        self._advance()  # '*'
                        self._advance()  # '/'
                        break
                    self._advance()
                continue
            break
