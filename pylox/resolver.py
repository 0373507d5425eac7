"""Static scope analysis for the Lox language.

The resolver walks the whole program once before it runs. For every
variable-like expression that refers to a local declaration it tells
the interpreter where that declaration lives: how many scopes to walk
outwards and which slot of that scope holds the value. References it
cannot find locally are left unresolved and become global lookups.

Along the way it enforces the rules that can be checked without running
the program (misplaced `return`, `break`, `this` and `super`, reading a
variable in its own initializer, redeclaration, self-inheritance) and
warns about local variables that are never read.

The scopes it opens must match the environments the interpreter
creates, one for one:

* a block, a function call and a lambda call each get one scope;
* a class with a superclass gets a scope holding `super` in slot 0;
* a non-static method gets a scope holding `this` in slot 0, outside
  the scope of its parameters.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from .ast import (
    Expr, Stmt, FunctionKind,
    Assign, Binary, Logical, Unary, Ternary, Call, Get, Set, This, Super,
    Grouping, Literal, Lambda, Variable,
    Expression, Print, Var, Block, If, While, Function, Return, Break, Class,
)
from .errors import ErrorReporter
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class FunctionType(enum.Enum):
    NONE = enum.auto()
    FUNCTION = enum.auto()
    METHOD = enum.auto()
    STATIC_METHOD = enum.auto()
    INITIALIZER = enum.auto()


class ClassType(enum.Enum):
    NONE = enum.auto()
    CLASS = enum.auto()
    SUBCLASS = enum.auto()


SYNTHETIC_NAMES = ('this', 'super')


@dataclass
class Scope:
    defined: List[bool] = field(default_factory=list)
    indexes: Dict[str, int] = field(default_factory=dict)
    tokens: Dict[str, Token] = field(default_factory=dict)
    used: set = field(default_factory=set)

    def declare(self, name: str, token: Optional[Token] = None, ready: bool = False) -> int:
        index = len(self.defined)
        self.defined.append(ready)
        self.indexes[name] = index
        if token is not None:
            self.tokens[name] = token
        return index


class Resolver:
    def __init__(self, interpreter: Interpreter, reporter: Optional[ErrorReporter] = None):
        self.interpreter = interpreter
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.scopes: List[Scope] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.in_static_method = False
        self.loop_depth = 0

    def resolve(self, nodes: Union[List[Stmt], Stmt, Expr, None]):
        if nodes is None:
            return
        if isinstance(nodes, list):
            for stmt in nodes:
                self.resolve(stmt)
            return
        if isinstance(nodes, Stmt):
            self.resolve_stmt(nodes)
        else:
            self.resolve_expr(nodes)

    # Scope handling

    def begin_scope(self):
        self.scopes.append(Scope())

    def end_scope(self):
        scope = self.scopes.pop()
        for name in scope.indexes:
            if name in SYNTHETIC_NAMES or name in scope.used:
                continue
            self.reporter.warning(scope.tokens[name], f"Local variable '{name}' is never used.")

    def declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope.indexes:
            self.reporter.error(name, "Already a variable with this name in this scope.")
            return
        scope.declare(name.lexeme, name)

    def define(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        scope.defined[scope.indexes[name.lexeme]] = True

    def define_synthetic(self, name: str):
        self.scopes[-1].declare(name, ready=True)

    def resolve_local(self, expr: Expr, name: Token, is_read: bool):
        for depth in range(len(self.scopes) - 1, -1, -1):
            scope = self.scopes[depth]
            index = scope.indexes.get(name.lexeme)
            if index is not None:
                if is_read:
                    scope.used.add(name.lexeme)
                self.interpreter.resolve(expr, len(self.scopes) - 1 - depth, index)
                return
        # not found locally: a global, looked up by name at run time

    def resolve_function(self, params: List[Token], body: List[Stmt], function_type: FunctionType):
        enclosing_function = self.current_function
        enclosing_loops = self.loop_depth
        self.current_function = function_type
        self.loop_depth = 0

        self.begin_scope()
        for param in params:
            self.declare(param)
            self.define(param)
        self.resolve(body)
        self.end_scope()

        self.current_function = enclosing_function
        self.loop_depth = enclosing_loops

    # Statements

    def resolve_stmt(self, stmt: Stmt):
        if isinstance(stmt, Block):
            self.begin_scope()
            self.resolve(stmt.statements)
            self.end_scope()
        elif isinstance(stmt, Var):
            self.declare(stmt.name)
            self.resolve(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt.params, stmt.body, FunctionType.FUNCTION)
        elif isinstance(stmt, Class):
            self.resolve_class(stmt)
        elif isinstance(stmt, Expression):
            self.resolve(stmt.expression)
        elif isinstance(stmt, Print):
            self.resolve(stmt.expression)
        elif isinstance(stmt, If):
            self.resolve(stmt.condition)
            self.resolve(stmt.then_branch)
            self.resolve(stmt.else_branch)
        elif isinstance(stmt, While):
            self.resolve(stmt.condition)
            self.loop_depth += 1
            self.resolve(stmt.body)
            self.loop_depth -= 1
        elif isinstance(stmt, Return):
            if self.current_function == FunctionType.NONE:
                self.reporter.error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.reporter.error(stmt.keyword, "Can't return a value from an initializer.")
                self.resolve(stmt.value)
        elif isinstance(stmt, Break):
            if self.loop_depth == 0:
                self.reporter.error(stmt.keyword, "Can't break outside of a while loop.")
        else:
            raise NotImplementedError(f"resolve: unexpected node type {type(stmt)}")

    def resolve_class(self, stmt: Class):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.reporter.error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self.resolve(stmt.superclass)
            self.begin_scope()
            self.define_synthetic('super')

        for method in stmt.methods:
            # functions nested in a static method stay static for `this` and `super`
            enclosing_static = self.in_static_method
            self.in_static_method = method.kind == FunctionKind.STATIC_METHOD
            if self.in_static_method:
                self.resolve_function(method.params, method.body, FunctionType.STATIC_METHOD)
            else:
                function_type = FunctionType.METHOD
                if method.kind == FunctionKind.METHOD and method.name.lexeme == 'init':
                    function_type = FunctionType.INITIALIZER
                self.begin_scope()
                self.define_synthetic('this')
                self.resolve_function(method.params, method.body, function_type)
                self.end_scope()
            self.in_static_method = enclosing_static

        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    # Expressions

    def resolve_expr(self, expr: Expr):
        if isinstance(expr, Variable):
            if self.scopes:
                scope = self.scopes[-1]
                index = scope.indexes.get(expr.name.lexeme)
                if index is not None and not scope.defined[index]:
                    self.reporter.error(expr.name, "Can't read local variable in its own initializer.")
            self.resolve_local(expr, expr.name, is_read=True)
        elif isinstance(expr, Assign):
            self.resolve(expr.value)
            self.resolve_local(expr, expr.name, is_read=False)
        elif isinstance(expr, (Binary, Logical)):
            self.resolve(expr.left)
            self.resolve(expr.right)
        elif isinstance(expr, Unary):
            self.resolve(expr.right)
        elif isinstance(expr, Ternary):
            self.resolve(expr.condition)
            self.resolve(expr.then_expr)
            self.resolve(expr.else_expr)
        elif isinstance(expr, Call):
            self.resolve(expr.callee)
            for argument in expr.arguments:
                self.resolve(argument)
        elif isinstance(expr, Get):
            self.resolve(expr.object)
        elif isinstance(expr, Set):
            self.resolve(expr.value)
            self.resolve(expr.object)
        elif isinstance(expr, This):
            if self.current_class == ClassType.NONE:
                self.reporter.error(expr.keyword, "Can't use 'this' outside of a class.")
            elif self.in_static_method:
                self.reporter.error(expr.keyword, "Can't use 'this' inside a static method.")
            else:
                self.resolve_local(expr, expr.keyword, is_read=True)
        elif isinstance(expr, Super):
            if self.current_class == ClassType.NONE:
                self.reporter.error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self.current_class != ClassType.SUBCLASS:
                self.reporter.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            elif self.in_static_method:
                self.reporter.error(expr.keyword, "Can't use 'super' inside a static method.")
            else:
                self.resolve_local(expr, expr.keyword, is_read=True)
        elif isinstance(expr, Grouping):
            self.resolve(expr.expression)
        elif isinstance(expr, Lambda):
            self.resolve_function(expr.params, expr.body, FunctionType.FUNCTION)
        elif isinstance(expr, Literal):
            pass
        else:
            raise NotImplementedError(f"resolve: unexpected node type {type(expr)}")
