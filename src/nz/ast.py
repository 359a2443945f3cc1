"""Nz AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class Binary(Expr):
    """left op right."""

    left: Expr
    operator: Token
    right: Expr


@dataclass
class Grouping(Expr):
    """( expression )."""

    expression: Expr


@dataclass
class Literal(Expr):
    """Number, string, true/false or nil."""

    value: float | str | bool | None


@dataclass
class Unary(Expr):
    """op right."""

    operator: Token
    right: Expr


@dataclass
class Variable(Expr):
    """Variable reference."""

    name: Token


@dataclass
class Assign(Expr):
    """name = value."""

    name: Token
    value: Expr


@dataclass
class Logical(Expr):
    """left and/or right — short-circuiting."""

    left: Expr
    operator: Token
    right: Expr


@dataclass
class Call(Expr):
    """callee(arguments). paren is the closing parenthesis."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass
class Get(Expr):
    """object.name."""

    object: Expr
    name: Token


@dataclass
class Set(Expr):
    """object.name = value."""

    object: Expr
    name: Token
    value: Expr


@dataclass
class Super(Expr):
    """super.method."""

    keyword: Token
    method: Token


@dataclass
class This(Expr):
    """this."""

    keyword: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""


@dataclass
class Expression(Stmt):
    """Bare expression as statement."""

    expression: Expr


@dataclass
class Print(Stmt):
    """print expression;"""

    expression: Expr


@dataclass
class Var(Stmt):
    """var name = initializer?;"""

    name: Token
    initializer: Expr | None


@dataclass
class Return(Stmt):
    """return value?;"""

    keyword: Token
    value: Expr | None


@dataclass
class Block(Stmt):
    """{ statements }."""

    statements: list[Stmt]


@dataclass
class If(Stmt):
    """if (condition) then_branch else else_branch."""

    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass
class While(Stmt):
    """while (condition) body."""

    condition: Expr
    body: Stmt


@dataclass
class Function(Stmt):
    """fun name(params) { body } — also a class method."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass
class Class(Stmt):
    """class name < superclass { methods }."""

    name: Token
    superclass: Variable | None
    methods: list[Function]
