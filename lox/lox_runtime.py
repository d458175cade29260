# lox_runtime.py

import inspect
import sys
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from lox.lox_datatypes import NativeFunction
from lox.lox_errors import Diagnostic, ErrorReporter
from lox.lox_interpreter import Interpreter
from lox.lox_parser import parse
from lox.lox_printer import Printer
from lox.lox_resolver import resolve
from lox.lox_scanner import scan

# ===================================================================
# 1. Natives
# ===================================================================


class Natives:
    """Host functions exposed to Lox scripts.

    Every method named `_<name>` is installed into the globals as `<name>`,
    with its arity taken from the method signature.
    """

    def _clock(self):
        return time.time()


# ===================================================================
# 2. Script Execution
# ===================================================================

Token = Dict[str, Any]

# Frames shown in a runtime stacktrace; deeper stacks are elided.
MAX_TRACE_FRAMES = 8

# Deeply nested programs recurse once per level in the parser, resolver and
# interpreter; the default limit of 1000 is too shallow for them.
RECURSION_LIMIT = 10000
if sys.getrecursionlimit() < RECURSION_LIMIT:
    sys.setrecursionlimit(RECURSION_LIMIT)


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_token: Optional[Token] = None
    side_effects: List[Dict] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    source_context: Optional[str] = None

    def format_error(self) -> str:
        """Formats the error message followed by the offending source lines, if known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.source_context:
            return f"{msg}\n{self.source_context}"
        return msg


class ScriptRunner:
    """Scans, parses, resolves and executes Lox code.

    A runner keeps one interpreter for its whole life, so globals defined by
    one `handle_script` call are visible to the next (REPL sessions).
    """

    def __init__(
        self,
        load_natives: bool = True,
        stdout: Optional[Callable[[str], None]] = None,
        stderr: Optional[Callable[[str], None]] = None,
    ):
        self.reporter = ErrorReporter(sink=stderr)
        self.interpreter = Interpreter(self.reporter, stdout=stdout)
        self.printer = Printer()
        if load_natives:
            self._install_natives(Natives())

    def _install_natives(self, natives: Natives):
        for name, member in inspect.getmembers(natives):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                lox_name = name[1:]
                arity = len(inspect.signature(member).parameters)
                self.interpreter.globals.define(lox_name, NativeFunction(lox_name, member, arity))

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script."""
        # Clear per-run state; globals persist.
        self.reporter.reset()
        self.interpreter.side_effects.clear()
        self.interpreter.call_stack.clear()
        try:
            # 1. Scan and parse
            tokens = scan(source_code, self.reporter)
            statements = parse(tokens, self.reporter)
            self.interpreter._dbg("parsed", len(tokens), "tokens", len(statements), "statements")
            if self.reporter.had_error:
                return self._error_result(source_code)

            # 2. Resolve
            resolve(statements, self.interpreter, self.reporter)
            if self.reporter.had_error:
                return self._error_result(source_code)

            # 3. Evaluate
            value = self.interpreter.interpret(statements)
            if self.reporter.had_runtime_error:
                return self._error_result(source_code)

            return ExecutionResult(
                status='success',
                value=value,
                side_effects=list(self.interpreter.side_effects),
            )
        except Exception as e:
            self.interpreter._dbg("internal error", traceback.format_exc())
            msg = f"InternalError: {e}"
            effects = list(self.interpreter.side_effects)
            effects.append({'topics': ['stderr'], 'message': msg})
            return ExecutionResult(status='error', error_message=msg, side_effects=effects)

    def _error_result(self, source: str) -> ExecutionResult:
        diagnostics = list(self.reporter.diagnostics)
        msg = self.reporter.format_all()
        if self.reporter.had_runtime_error:
            st = self._format_stacktrace()
            if st:
                msg += "\n" + st

        first = diagnostics[0] if diagnostics else None
        token = {'line': first.line} if first else None
        context = self._source_context(source, first.line) if first else None

        effects = list(self.interpreter.side_effects)
        effects.append({'topics': ['stderr'], 'message': msg})
        return ExecutionResult(
            status='error',
            error_message=msg,
            error_token=token,
            side_effects=effects,
            diagnostics=diagnostics,
            source_context=context,
        )

    def _source_context(self, source: str, line: int, radius: int = 1) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            out.append(f"{prefix} {str(i).rjust(width)} | {lines[i - 1]}")
        return "\n".join(out)

    def _format_stacktrace(self) -> str:
        stack = self.interpreter.call_stack
        if not stack:
            return ""
        frames = []
        for frame in stack[-MAX_TRACE_FRAMES:]:
            args = " ".join(self.printer.stringify(a) for a in frame['args'])
            frames.append(f"({frame['name']} {args})" if args else f"({frame['name']})")
        if len(stack) > MAX_TRACE_FRAMES:
            frames.insert(0, "...")
        return "Lox stacktrace: " + " ".join(frames)
