"""
Turns Lox source text into a flat list of tokens.
"""
from typing import Any, List, Optional

from lox.lox_errors import ErrorReporter
from lox.lox_tokens import KEYWORDS, Token, TokenType


_SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# Operators that become a two-character token when followed by '='.
_EQUAL_SUFFIXED = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


def _is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def _is_alpha(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'


def _is_alphanumeric(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Scanner:
    """Single-pass scanner with one character of lookahead (two for numbers).

    Bad input never raises: unexpected characters and unterminated strings
    are reported to the ErrorReporter and scanning carries on.
    """
    def __init__(self, source: str, reporter: Optional[ErrorReporter] = None):
        self.source = source
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        while not self._is_at_end():
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def _scan_token(self):
        c = self._advance()
        if c in _SINGLE_CHAR_TOKENS:
            self._add_token(_SINGLE_CHAR_TOKENS[c])
            return
        if c in _EQUAL_SUFFIXED:
            two, one = _EQUAL_SUFFIXED[c]
            self._add_token(two if self._match('=') else one)
            return

        match c:
            case '/':
                if self._match('/'):
                    # Comment runs to the end of the line.
                    while self._peek() != '\n' and not self._is_at_end():
                        self._advance()
                else:
                    self._add_token(TokenType.SLASH)
            case ' ' | '\r' | '\t':
                pass
            case '\n':
                self.line += 1
            case '"':
                self._string()
            case _:
                if _is_digit(c):
                    self._number()
                elif _is_alpha(c):
                    self._identifier()
                else:
                    self.reporter.error(self.line, "Unexpected character.")

    def _identifier(self):
        while _is_alphanumeric(self._peek()):
            self._advance()
        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _number(self):
        while _is_digit(self._peek()):
            self._advance()

        # A trailing '.' is only part of the number when digits follow it.
        if self._peek() == '.' and _is_digit(self._peek_next()):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def _string(self):
        while self._peek() != '"' and not self._is_at_end():
            if self._peek() == '\n':
                self.line += 1
            self._advance()

        if self._is_at_end():
            self.reporter.error(self.line, "Unterminated string.")
            return

        # The closing quote.
        self._advance()
        self._add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _peek(self) -> str:
        if self._is_at_end():
            return '\0'
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _add_token(self, type_: TokenType, literal: Any = None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(type_, text, literal, self.line))


def scan(source: str, reporter: Optional[ErrorReporter] = None) -> List[Token]:
    """Scan `source` into tokens, always ending with an EOF token."""
    return Scanner(source, reporter).scan_tokens()
