"""
Defines the AST node types produced by the parser.

There are two closed families: expressions (Expr), which produce values,
and statements (Stmt), which produce effects. Nodes compare and hash by
identity so the resolver can key its side table on the node object itself;
two identical-looking expressions at different places in the source are
distinct keys.
"""
from dataclasses import dataclass
from typing import Any, List, Optional

from lox.lox_tokens import Token


# =================================================================
# Expressions
# =================================================================

class Expr:
    """Base class for expression nodes."""
    pass


@dataclass(eq=False)
class Literal(Expr):
    value: Any


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    """Short-circuiting `and` / `or`."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used to locate runtime errors
    arguments: List[Expr]


@dataclass(eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token


# =================================================================
# Statements
# =================================================================

class Stmt:
    """Base class for statement nodes."""
    pass


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]
