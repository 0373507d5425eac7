"""Parenthesized prefix rendering of the Lox AST.

Used by `python -m pylox --print-ast` to show how a program was parsed,
including the desugaring of `for` loops. Every composite node prints as
`(name child child ...)`.
"""

from __future__ import annotations

from typing import Any, List

from .ast import (
    Expr, Stmt,
    Assign, Binary, Logical, Unary, Ternary, Call, Get, Set, This, Super,
    Grouping, Literal, Lambda, Variable,
    Expression, Print, Var, Block, If, While, Function, Return, Break, Class,
)
from .tokens import Token


class AstPrinter:
    def print(self, node: Any) -> str:
        if node is None:
            return '<missing>'
        if isinstance(node, Stmt):
            return self.print_stmt(node)
        return self.print_expr(node)

    def parenthesize(self, name: str, *parts: Any) -> str:
        pieces = [name]
        for part in parts:
            if isinstance(part, Token):
                pieces.append(part.lexeme)
            elif isinstance(part, list):
                pieces.append(self.print_list(part))
            elif isinstance(part, str):
                pieces.append(part)
            else:
                pieces.append(self.print(part))
        return '(' + ' '.join(pieces) + ')'

    def print_list(self, items: List[Any]) -> str:
        return '[' + ' '.join(
            item.lexeme if isinstance(item, Token) else self.print(item) for item in items
        ) + ']'

    def print_expr(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            if expr.value is None:
                return 'nil'
            if isinstance(expr.value, bool):
                return 'true' if expr.value else 'false'
            if isinstance(expr.value, str):
                return '"' + expr.value + '"'
            return str(expr.value)
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, This):
            return 'this'
        if isinstance(expr, Super):
            return self.parenthesize('super', expr.method)
        if isinstance(expr, Grouping):
            return self.parenthesize('group', expr.expression)
        if isinstance(expr, Unary):
            return self.parenthesize(expr.operator.lexeme, expr.right)
        if isinstance(expr, (Binary, Logical)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, Ternary):
            return self.parenthesize('?:', expr.condition, expr.then_expr, expr.else_expr)
        if isinstance(expr, Assign):
            return self.parenthesize('=', expr.name, expr.value)
        if isinstance(expr, Call):
            return self.parenthesize('call', expr.callee, *expr.arguments)
        if isinstance(expr, Get):
            return self.parenthesize('.', expr.object, expr.name)
        if isinstance(expr, Set):
            return self.parenthesize('=', self.parenthesize('.', expr.object, expr.name), expr.value)
        if isinstance(expr, Lambda):
            return self.parenthesize('lambda', expr.params, expr.body)
        raise NotImplementedError(f"print: unexpected node type {type(expr)}")

    def print_stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, Expression):
            return self.parenthesize(';', stmt.expression)
        if isinstance(stmt, Print):
            return self.parenthesize('print', stmt.expression)
        if isinstance(stmt, Var):
            if stmt.initializer is None:
                return self.parenthesize('var', stmt.name)
            return self.parenthesize('var', stmt.name, stmt.initializer)
        if isinstance(stmt, Block):
            return self.parenthesize('block', *stmt.statements)
        if isinstance(stmt, If):
            if stmt.else_branch is None:
                return self.parenthesize('if', stmt.condition, stmt.then_branch)
            return self.parenthesize('if-else', stmt.condition, stmt.then_branch, stmt.else_branch)
        if isinstance(stmt, While):
            return self.parenthesize('while', stmt.condition, stmt.body)
        if isinstance(stmt, Function):
            return self.parenthesize(stmt.kind.value.replace(' ', '-'), stmt.name, stmt.params, stmt.body)
        if isinstance(stmt, Return):
            if stmt.value is None:
                return '(return)'
            return self.parenthesize('return', stmt.value)
        if isinstance(stmt, Break):
            return '(break)'
        if isinstance(stmt, Class):
            if stmt.superclass is None:
                return self.parenthesize('class', stmt.name, *stmt.methods)
            return self.parenthesize('class', stmt.name, '<', stmt.superclass.name, *stmt.methods)
        raise NotImplementedError(f"print: unexpected node type {type(stmt)}")
