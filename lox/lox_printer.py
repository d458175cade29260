"""
Formats Lox runtime values for `print` and renders AST nodes for debugging.
"""
import math

from lox.lox_ast import (
    Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from lox.lox_datatypes import LoxClass, LoxFunction, LoxInstance, NativeFunction


class Printer:
    """Turns runtime values into their Lox display form and AST nodes into prefix notation."""

    def __init__(self):
        self._value_handlers = self._create_value_handlers()
        self._node_handlers = self._create_node_handlers()

    # ---------------------------------------------------------------
    # Runtime values
    # ---------------------------------------------------------------

    def stringify(self, value) -> str:
        """The text `print` writes for `value`."""
        handler = self._value_handlers.get(type(value))
        if handler is None:
            return str(value)
        return handler(value)

    def _create_value_handlers(self):
        return {
            type(None): lambda v: "nil",
            bool: lambda v: "true" if v else "false",
            float: self._stringify_number,
            str: lambda v: v,
            LoxFunction: lambda v: f"<fn {v.name}>",
            NativeFunction: lambda v: "<native fn>",
            LoxClass: lambda v: v.name,
            LoxInstance: lambda v: f"{v.klass.name} instance",
        }

    def _stringify_number(self, value: float) -> str:
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text

    # ---------------------------------------------------------------
    # AST nodes
    # ---------------------------------------------------------------

    def pformat(self, node) -> str:
        """Render an expression, a statement or a list of statements in parenthesized prefix form."""
        if isinstance(node, list):
            return "\n".join(self.pformat(n) for n in node)
        handler = self._node_handlers.get(type(node))
        if handler is None:
            return repr(node)
        return handler(node)

    def _create_node_handlers(self):
        return {
            Literal: self._pformat_literal,
            Grouping: lambda n: self._parenthesize("group", n.expression),
            Unary: lambda n: self._parenthesize(n.operator.lexeme, n.right),
            Binary: lambda n: self._parenthesize(n.operator.lexeme, n.left, n.right),
            Logical: lambda n: self._parenthesize(n.operator.lexeme, n.left, n.right),
            Variable: lambda n: n.name.lexeme,
            Assign: lambda n: self._parenthesize("=", n.name.lexeme, n.value),
            Call: lambda n: self._parenthesize("call", n.callee, *n.arguments),
            Get: lambda n: self._parenthesize(".", n.object, n.name.lexeme),
            Set: lambda n: self._parenthesize("=", n.object, n.name.lexeme, n.value),
            This: lambda n: "this",
            Super: lambda n: self._parenthesize("super", n.method.lexeme),
            Expression: lambda n: self._parenthesize(";", n.expression),
            Print: lambda n: self._parenthesize("print", n.expression),
            Var: self._pformat_var,
            Block: lambda n: self._parenthesize("block", *n.statements),
            If: self._pformat_if,
            While: lambda n: self._parenthesize("while", n.condition, n.body),
            Function: self._pformat_function,
            Class: self._pformat_class,
            Return: self._pformat_return,
        }

    def _pformat_literal(self, node: Literal) -> str:
        if isinstance(node.value, str):
            return f'"{node.value}"'
        return self.stringify(node.value)

    def _pformat_var(self, node: Var) -> str:
        if node.initializer is None:
            return self._parenthesize("var", node.name.lexeme)
        return self._parenthesize("var", node.name.lexeme, "=", node.initializer)

    def _pformat_if(self, node: If) -> str:
        if node.else_branch is None:
            return self._parenthesize("if", node.condition, node.then_branch)
        return self._parenthesize("if-else", node.condition, node.then_branch, node.else_branch)

    def _pformat_function(self, node: Function) -> str:
        params = " ".join(p.lexeme for p in node.params)
        return self._parenthesize(f"fun {node.name.lexeme}({params})", *node.body)

    def _pformat_class(self, node: Class) -> str:
        head = f"class {node.name.lexeme}"
        if node.superclass is not None:
            head += f" < {node.superclass.name.lexeme}"
        return self._parenthesize(head, *node.methods)

    def _pformat_return(self, node: Return) -> str:
        if node.value is None:
            return "(return)"
        return self._parenthesize("return", node.value)

    def _parenthesize(self, name: str, *parts) -> str:
        rendered = [p if isinstance(p, str) else self.pformat(p) for p in parts]
        return "(" + " ".join([name] + rendered) + ")"
