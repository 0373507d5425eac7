"""Abstract Syntax Tree (AST) definitions for the Lox language.

The tree is made of two closed families, expressions and statements.
Nodes compare by identity (`eq=False`): the resolver attaches scope
information to individual nodes, so two textually identical variable
references must stay distinct dictionary keys.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, List, Optional

from .tokens import Token


class FunctionKind(enum.Enum):
    FUNCTION = 'function'
    METHOD = 'method'
    STATIC_METHOD = 'static method'
    GETTER = 'getter'


@dataclass(eq=False)
class Expr:
    """Base class for all expression nodes."""
    pass


@dataclass(eq=False)
class Stmt:
    """Base class for all statement nodes."""
    pass


# Expressions

@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Optional[Expr]  # None when the parser recovered from a missing left operand
    operator: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Ternary(Expr):
    condition: Expr
    question: Token
    then_expr: Expr
    colon: Token
    else_expr: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
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


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Literal(Expr):
    value: Any


@dataclass(eq=False)
class Lambda(Expr):
    keyword: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Variable(Expr):
    name: Token


# Statements

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
    kind: FunctionKind = FunctionKind.FUNCTION


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(eq=False)
class Break(Stmt):
    keyword: Token


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]
