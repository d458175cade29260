"""
The tree-walking Lox interpreter.
"""
import math
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from lox.lox_ast import (
    Expr, Stmt,
    Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from lox.lox_datatypes import (
    Environment, LoxCallable, LoxClass, LoxFunction, LoxInstance, ReturnSignal,
)
from lox.lox_errors import ErrorReporter, LoxRuntimeError
from lox.lox_printer import Printer
from lox.lox_tokens import Token, TokenType


def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else, including 0 and "", is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    """Value equality without coercion between runtime types."""
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # bool is an int subclass in Python, so `true == 1` must be ruled out explicitly.
    if type(a) is not type(b):
        return False
    return a == b


def _is_number(value: Any) -> bool:
    return isinstance(value, float)


def _divide(left: float, right: float) -> float:
    """IEEE-754 division: dividing by zero gives an infinity or NaN instead of raising."""
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)


class Interpreter:
    """Executes resolved statements against its own chain of environments.

    Each instance owns its globals and its table of resolved scope distances,
    so separate interpreters never share state. Successive calls to
    `interpret` on the same instance share the globals (REPL sessions).
    """
    def __init__(self, reporter: Optional[ErrorReporter] = None, stdout: Optional[Callable[[str], None]] = None):
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.stdout = stdout
        self.globals = Environment()
        self.environment = self.globals
        # Scope distances recorded by the resolver, keyed by node identity.
        self.locals: Dict[Expr, int] = {}
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []
        self.printer = Printer()

    # ---------------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------------

    def interpret(self, statements: List[Stmt]) -> Any:
        """Run `statements` in order, stopping at the first runtime error.

        Returns the value of the last statement when it is an expression
        statement, otherwise None.
        """
        value = None
        # Frames left by a failed call in an earlier run are stale now.
        self.call_stack.clear()
        try:
            for statement in statements:
                if isinstance(statement, Expression):
                    value = self.evaluate(statement.expression)
                else:
                    value = None
                    self.execute(statement)
        except LoxRuntimeError as error:
            self.reporter.runtime_error(error)
            return None
        return value

    def resolve(self, expr: Expr, depth: int):
        self.locals[expr] = depth

    # ---------------------------------------------------------------
    # Statements
    # ---------------------------------------------------------------

    def execute(self, stmt: Stmt):
        match stmt:
            case Expression(expression=expression):
                self.evaluate(expression)

            case Print(expression=expression):
                self._emit_stdout(self.printer.stringify(self.evaluate(expression)))

            case Var(name=name, initializer=initializer):
                value = None
                if initializer is not None:
                    value = self.evaluate(initializer)
                self.environment.define(name.lexeme, value)

            case Block(statements=statements):
                self.execute_block(statements, Environment(self.environment))

            case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
                if is_truthy(self.evaluate(condition)):
                    self.execute(then_branch)
                elif else_branch is not None:
                    self.execute(else_branch)

            case While(condition=condition, body=body):
                while is_truthy(self.evaluate(condition)):
                    self.execute(body)

            case Function(name=name):
                self.environment.define(name.lexeme, LoxFunction(stmt, self.environment))

            case Class():
                self._execute_class(stmt)

            case Return(value=value_expr):
                value = None
                if value_expr is not None:
                    value = self.evaluate(value_expr)
                raise ReturnSignal(value)

            case _:
                raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def execute_block(self, statements: List[Stmt], environment: Environment):
        """Run `statements` in `environment`, restoring the current frame however the block exits."""
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                self.execute(statement)
        finally:
            self.environment = previous

    def _execute_class(self, stmt: Class):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods: Dict[str, LoxFunction] = {}
        for method in stmt.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_init)

        klass = LoxClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(stmt.name, klass)

    def _emit_stdout(self, text: str):
        self.side_effects.append({'topics': ['stdout'], 'message': text})
        if self.stdout is not None:
            self.stdout(text)

    # ---------------------------------------------------------------
    # Expressions
    # ---------------------------------------------------------------

    def evaluate(self, expr: Expr) -> Any:
        match expr:
            case Literal(value=value):
                return value

            case Grouping(expression=inner):
                return self.evaluate(inner)

            case Unary(operator=operator, right=right):
                return self._unary(operator, self.evaluate(right))

            case Binary(left=left, operator=operator, right=right):
                # Long operator chains lean left, one Python frame per operand.
                try:
                    left_value = self.evaluate(left)
                except RecursionError:
                    raise LoxRuntimeError(operator, "Stack overflow.") from None
                return self._binary(operator, left_value, self.evaluate(right))

            case Logical(left=left, operator=operator, right=right):
                try:
                    left_value = self.evaluate(left)
                except RecursionError:
                    raise LoxRuntimeError(operator, "Stack overflow.") from None
                if operator.type == TokenType.OR:
                    if is_truthy(left_value):
                        return left_value
                elif not is_truthy(left_value):
                    return left_value
                return self.evaluate(right)

            case Variable(name=name):
                return self._look_up_variable(name, expr)

            case Assign(name=name, value=value_expr):
                value = self.evaluate(value_expr)
                distance = self.locals.get(expr)
                if distance is not None:
                    self.environment.assign_at(distance, name, value)
                else:
                    self.globals.assign(name, value)
                return value

            case Call():
                return self._call(expr)

            case Get(object=obj_expr, name=name):
                obj = self.evaluate(obj_expr)
                if isinstance(obj, LoxInstance):
                    return obj.get(name)
                raise LoxRuntimeError(name, "Only instances have properties.")

            case Set(object=obj_expr, name=name, value=value_expr):
                obj = self.evaluate(obj_expr)
                if not isinstance(obj, LoxInstance):
                    raise LoxRuntimeError(name, "Only instances have fields.")
                value = self.evaluate(value_expr)
                obj.set(name, value)
                return value

            case This(keyword=keyword):
                return self._look_up_variable(keyword, expr)

            case Super(method=method):
                distance = self.locals[expr]
                superclass = self.environment.get_at(distance, "super")
                # `this` is always bound one frame inside the `super` frame.
                instance = self.environment.get_at(distance - 1, "this")
                bound = superclass.find_method(method.lexeme)
                if bound is None:
                    raise LoxRuntimeError(method, f"Undefined property '{method.lexeme}'.")
                return bound.bind(instance)

            case _:
                raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def _look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _unary(self, operator: Token, right: Any) -> Any:
        match operator.type:
            case TokenType.MINUS:
                self._check_number_operand(operator, right)
                return -right
            case TokenType.BANG:
                return not is_truthy(right)
        raise LoxRuntimeError(operator, f"Unknown unary operator '{operator.lexeme}'.")

    def _binary(self, operator: Token, left: Any, right: Any) -> Any:
        match operator.type:
            case TokenType.PLUS:
                if _is_number(left) and _is_number(right):
                    return left + right
                if isinstance(left, str) and isinstance(right, str):
                    return left + right
                raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")
            case TokenType.MINUS:
                self._check_number_operands(operator, left, right)
                return left - right
            case TokenType.STAR:
                self._check_number_operands(operator, left, right)
                return left * right
            case TokenType.SLASH:
                self._check_number_operands(operator, left, right)
                return _divide(left, right)
            case TokenType.GREATER:
                self._check_number_operands(operator, left, right)
                return left > right
            case TokenType.GREATER_EQUAL:
                self._check_number_operands(operator, left, right)
                return left >= right
            case TokenType.LESS:
                self._check_number_operands(operator, left, right)
                return left < right
            case TokenType.LESS_EQUAL:
                self._check_number_operands(operator, left, right)
                return left <= right
            case TokenType.EQUAL_EQUAL:
                return is_equal(left, right)
            case TokenType.BANG_EQUAL:
                return not is_equal(left, right)
        raise LoxRuntimeError(operator, f"Unknown binary operator '{operator.lexeme}'.")

    def _call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}."
            )

        name = getattr(callee, "name", "<call>")
        self._dbg("call", name, "argc", len(arguments), "depth", len(self.call_stack))
        # Frames stay on the stack when the call fails so the error can show a trace.
        self._push_frame(name, arguments, expr.paren)
        try:
            result = callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None
        self._pop_frame()
        return result

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    def _check_number_operand(self, operator: Token, operand: Any):
        if _is_number(operand):
            return
        raise LoxRuntimeError(operator, "Operand must be a number.")

    def _check_number_operands(self, operator: Token, left: Any, right: Any):
        if _is_number(left) and _is_number(right):
            return
        raise LoxRuntimeError(operator, "Operands must be numbers.")

    def _push_frame(self, name: str, args: List[Any], call_site: Token):
        self.call_stack.append({
            'name': name,
            'args': args,
            'line': call_site.line,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("LOX_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)
