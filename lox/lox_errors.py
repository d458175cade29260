"""
Error types and the diagnostic sink shared by every stage of the pipeline.

Static errors (scanner, parser, resolver) and runtime errors (interpreter)
both end up in an ErrorReporter. The reporter only records and formats; it
never decides whether the process should exit.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional

from lox.lox_tokens import Token, TokenType


# Reported when a program is nested deeper than the host stack allows.
TOO_MUCH_NESTING = "Too much nesting."


class LoxError(Exception):
    """Base class for errors raised by the Lox pipeline."""
    pass


class ParseError(LoxError):
    """Unwinds the parser to the nearest declaration so it can synchronize."""
    pass


class LoxRuntimeError(LoxError):
    """A runtime error carrying the token that triggered it."""
    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message


@dataclass
class Diagnostic:
    kind: Literal['static', 'runtime']
    line: int
    message: str
    where: str = ""

    def format(self) -> str:
        if self.kind == 'runtime':
            return f"{self.message}\n[line {self.line}]"
        return f"[line {self.line}] Error{self.where}: {self.message}"


@dataclass
class ErrorReporter:
    """Collects diagnostics and remembers whether a run failed statically or at runtime.

    `sink`, when given, receives each formatted diagnostic as it is reported.
    """
    sink: Optional[Callable[[str], None]] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    had_error: bool = False
    had_runtime_error: bool = False

    def reset(self):
        self.diagnostics = []
        self.had_error = False
        self.had_runtime_error = False

    def report(self, line: int, where: str, message: str):
        self._emit(Diagnostic('static', line, message, where))
        self.had_error = True

    def error(self, line: int, message: str):
        self.report(line, "", message)

    def token_error(self, token: Token, message: str):
        if token.type == TokenType.EOF:
            self.report(token.line, " at end", message)
        else:
            self.report(token.line, f" at '{token.lexeme}'", message)

    def runtime_error(self, error: LoxRuntimeError):
        self._emit(Diagnostic('runtime', error.token.line, error.message))
        self.had_runtime_error = True

    def _emit(self, diagnostic: Diagnostic):
        self.diagnostics.append(diagnostic)
        if self.sink is not None:
            self.sink(diagnostic.format())

    def format_all(self) -> str:
        return "\n".join(d.format() for d in self.diagnostics)
