"""
Static scope resolution.

Walks the AST in the same order the interpreter will, keeping a stack of
lexical scopes, and tells the interpreter how many scopes out each local
variable reference lives. References it cannot find in any enclosing scope
are left alone and looked up in the globals at run time.
"""
from enum import Enum, auto
from typing import TYPE_CHECKING, Dict, List, Optional

from lox.lox_ast import (
    Expr, Stmt,
    Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from lox.lox_errors import TOO_MUCH_NESTING, ErrorReporter
from lox.lox_tokens import Token

if TYPE_CHECKING:
    from lox.lox_interpreter import Interpreter


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    def __init__(self, interpreter: 'Interpreter', reporter: Optional[ErrorReporter] = None):
        self.interpreter = interpreter
        self.reporter = reporter if reporter is not None else ErrorReporter()
        # Each scope maps a name to whether its initializer has finished.
        self.scopes: List[Dict[str, bool]] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: List[Stmt]):
        for statement in statements:
            self._resolve_stmt(statement)

    # ---------------------------------------------------------------
    # Statements
    # ---------------------------------------------------------------

    def _resolve_stmt(self, stmt: Stmt):
        match stmt:
            case Block(statements=statements):
                self._begin_scope()
                self.resolve(statements)
                self._end_scope()

            case Var(name=name, initializer=initializer):
                self._declare(name)
                if initializer is not None:
                    self._resolve_expr(initializer)
                self._define(name)

            case Function(name=name):
                # Defined before the body so the function can refer to itself.
                self._declare(name)
                self._define(name)
                self._resolve_function(stmt, FunctionType.FUNCTION)

            case Class():
                self._resolve_class(stmt)

            case Expression(expression=expression) | Print(expression=expression):
                self._resolve_expr(expression)

            case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
                self._resolve_expr(condition)
                self._resolve_stmt(then_branch)
                if else_branch is not None:
                    self._resolve_stmt(else_branch)

            case While(condition=condition, body=body):
                self._resolve_expr(condition)
                self._resolve_stmt(body)

            case Return(keyword=keyword, value=value):
                if self.current_function == FunctionType.NONE:
                    self.reporter.token_error(keyword, "Can't return from top-level code.")
                if value is not None:
                    if self.current_function == FunctionType.INITIALIZER:
                        self.reporter.token_error(keyword, "Can't return a value from an initializer.")
                    self._resolve_expr(value)

            case _:
                raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def _resolve_class(self, stmt: Class):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.reporter.token_error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self._resolve_expr(stmt.superclass)
            self._begin_scope()
            self.scopes[-1]["super"] = True

        self._begin_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
            self._resolve_function(method, kind)
        self._end_scope()

        if stmt.superclass is not None:
            self._end_scope()

        self.current_class = enclosing_class

    def _resolve_function(self, function: Function, kind: FunctionType):
        enclosing_function = self.current_function
        self.current_function = kind

        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self.resolve(function.body)
        self._end_scope()

        self.current_function = enclosing_function

    # ---------------------------------------------------------------
    # Expressions
    # ---------------------------------------------------------------

    def _resolve_expr(self, expr: Expr):
        match expr:
            case Variable(name=name):
                if self.scopes and self.scopes[-1].get(name.lexeme) is False:
                    self.reporter.token_error(name, "Can't read local variable in its own initializer.")
                self._resolve_local(expr, name)

            case Assign(name=name, value=value):
                self._resolve_expr(value)
                self._resolve_local(expr, name)

            case Binary(left=left, operator=operator, right=right) | \
                    Logical(left=left, operator=operator, right=right):
                try:
                    self._resolve_expr(left)
                except RecursionError:
                    self.reporter.token_error(operator, TOO_MUCH_NESTING)
                    return
                self._resolve_expr(right)

            case Unary(right=right):
                self._resolve_expr(right)

            case Grouping(expression=inner):
                self._resolve_expr(inner)

            case Literal():
                pass

            case Call(callee=callee, arguments=arguments):
                self._resolve_expr(callee)
                for argument in arguments:
                    self._resolve_expr(argument)

            case Get(object=obj):
                # Property names are looked up dynamically on the instance.
                self._resolve_expr(obj)

            case Set(object=obj, value=value):
                self._resolve_expr(value)
                self._resolve_expr(obj)

            case This(keyword=keyword):
                if self.current_class == ClassType.NONE:
                    self.reporter.token_error(keyword, "Can't use 'this' outside of a class.")
                    return
                self._resolve_local(expr, keyword)

            case Super(keyword=keyword):
                if self.current_class == ClassType.NONE:
                    self.reporter.token_error(keyword, "Can't use 'super' outside of a class.")
                elif self.current_class != ClassType.SUBCLASS:
                    self.reporter.token_error(keyword, "Can't use 'super' in a class with no superclass.")
                self._resolve_local(expr, keyword)

            case _:
                raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    # ---------------------------------------------------------------
    # Scope bookkeeping
    # ---------------------------------------------------------------

    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = False

    def _define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: Expr, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.interpreter.resolve(expr, depth)
                return
        # Not found: a global, resolved dynamically.


def resolve(statements: List[Stmt], interpreter: 'Interpreter', reporter: Optional[ErrorReporter] = None):
    """Annotate `statements` with scope distances, recording them on `interpreter`."""
    Resolver(interpreter, reporter).resolve(statements)
