"""Tree-walking interpreter for the Lox language.

This module evaluates a resolved AST. Statements are executed and
expressions evaluated by dispatching on the node's class; variables
that the resolver located are read straight from their environment
slot, everything else is a global looked up by name. `return` and
`break` travel as exceptions to the call frame or loop that handles
them, and a `LoxRuntimeError` unwinds all the way to `interpret()`,
which reports it and abandons the rest of that run.

`Lox` at the bottom ties scanner, parser, resolver and interpreter
together into one session, the way the command line and the REPL use
them.
"""

from __future__ import annotations

import builtins
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .ast import (
    Expr, Stmt, FunctionKind,
    Assign, Binary, Logical, Unary, Ternary, Call, Get, Set, This, Super,
    Grouping, Literal, Lambda, Variable,
    Expression, Print, Var, Block, If, While, Function, Return, Break, Class,
)
from .ast_printer import AstPrinter
from .environment import UNINITIALIZED, Environment, Location
from .errors import BreakSignal, ErrorReporter, LoxRuntimeError, ReturnSignal
from .parser import parse_program
from .resolver import Resolver
from .tokens import Token, TokenType
from .values import (
    BoundMethod, LoxCallable, LoxClass, LoxFunction, LoxInstance, LoxLambda,
    is_equal, is_truthy, stringify,
)


class Interpreter:
    """Core interpreter that executes a resolved Lox AST."""
    def __init__(self, out: Optional[TextIO] = None, reporter: Optional[ErrorReporter] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expr, Location] = {}
        self.out = out
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def resolve(self, expr: Expr, distance: int, index: int):
        self.locals[expr] = Location(distance, index)

    # Public API
    def interpret(self, statements: List[Stmt]):
        if self.debug_level >= 1:
            self.debug(f"run {len(statements)} statement(s)")
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as error:
            self.reporter.runtime_error(error)

    def interpret_expression(self, expr: Expr):
        try:
            value = self.evaluate(expr)
            self.write(stringify(value))
        except LoxRuntimeError as error:
            self.reporter.runtime_error(error)

    def write(self, text: str):
        print(text, file=self.out)

    def execute_block(self, statements: List[Stmt], environment: Environment):
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous

    def define(self, name: Token, value: Any):
        if self.environment is self.globals:
            self.globals.declare(name.lexeme, value)
        else:
            self.environment.define(value)
        if self.debug_level >= 2:
            shown = '<uninitialized>' if value is UNINITIALIZED else stringify(value)
            self.debug(f"declare {name.lexeme} = {shown}")

    def execute(self, stmt: Stmt):
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expression)
            return
        if isinstance(stmt, Print):
            self.write(stringify(self.evaluate(stmt.expression)))
            return
        if isinstance(stmt, Var):
            value = UNINITIALIZED
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.define(stmt.name, value)
            return
        if isinstance(stmt, Block):
            self.execute_block(stmt.statements, Environment(self.environment))
            return
        if isinstance(stmt, If):
            cond = self.evaluate(stmt.condition)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {stringify(cond)} -> {truthy}")
            if truthy:
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)
            return
        if isinstance(stmt, While):
            while True:
                cond = self.evaluate(stmt.condition)
                if self.debug_level >= 3:
                    self.debug(f"while condition {stringify(cond)} -> {is_truthy(cond)}")
                if not is_truthy(cond):
                    break
                try:
                    self.execute(stmt.body)
                except BreakSignal:
                    break
            return
        if isinstance(stmt, Function):
            self.define(stmt.name, LoxFunction(stmt, self.environment))
            return
        if isinstance(stmt, Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            raise ReturnSignal(value)
        if isinstance(stmt, Break):
            raise BreakSignal()
        if isinstance(stmt, Class):
            self.execute_class(stmt)
            return
        raise NotImplementedError(f"execute: unexpected node type {type(stmt)}")

    def execute_class(self, stmt: Class):
        superclass = None
        closure = self.environment
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")
            # `super` lives in slot 0 of a scope wrapping every method
            closure = Environment(closure)
            closure.define(superclass)

        methods: Dict[str, LoxFunction] = {}
        static_methods: Dict[str, LoxFunction] = {}
        for method in stmt.methods:
            if method.kind == FunctionKind.STATIC_METHOD:
                static_methods[method.name.lexeme] = LoxFunction(method, closure)
            else:
                is_initializer = method.kind == FunctionKind.METHOD and method.name.lexeme == 'init'
                methods[method.name.lexeme] = LoxFunction(method, closure, is_initializer)

        self.define(stmt.name, LoxClass(stmt.name.lexeme, superclass, methods, static_methods))

    # Expressions

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Variable):
            return self.look_up_variable(expr.name, expr)
        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            location = self.locals.get(expr)
            if location is not None:
                self.environment.assign_at(location, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        if isinstance(expr, Unary):
            right = self.evaluate(expr.right)
            if expr.operator.type == TokenType.MINUS:
                self.check_number_operands(expr.operator, right)
                return -right
            return not is_truthy(right)
        if isinstance(expr, Binary):
            return self.evaluate_binary(expr)
        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, Ternary):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_expr)
            return self.evaluate(expr.else_expr)
        if isinstance(expr, Call):
            return self.evaluate_call(expr)
        if isinstance(expr, Get):
            obj = self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return self.invoke_getter(obj.get(expr.name))
            if isinstance(obj, LoxClass):
                return obj.get(expr.name)
            raise LoxRuntimeError(expr.name, "Only instances have properties.")
        if isinstance(expr, Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        if isinstance(expr, This):
            return self.look_up_variable(expr.keyword, expr)
        if isinstance(expr, Super):
            location = self.locals[expr]
            superclass = self.environment.get_at(location, expr.keyword)
            # `this` is bound in the scope just inside the one holding `super`
            instance = self.environment.get_at(location.outward(), expr.keyword)
            method = superclass.find_method(expr.method.lexeme)
            if method is None:
                raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
            return self.invoke_getter(method.bind(instance))
        if isinstance(expr, Lambda):
            return LoxLambda(expr, self.environment)
        raise NotImplementedError(f"evaluate: unexpected node type {type(expr)}")

    def look_up_variable(self, name: Token, expr: Expr) -> Any:
        location = self.locals.get(expr)
        if location is not None:
            return self.environment.get_at(location, name)
        return self.globals.get(name)

    def invoke_getter(self, value: Any) -> Any:
        if isinstance(value, BoundMethod) and value.is_getter:
            return value.call(self, [])
        return value

    def evaluate_binary(self, expr: Binary) -> Any:
        op = expr.operator
        if expr.left is None:
            raise LoxRuntimeError(op, "Binary expression missing left operand.")
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)

        if op.type == TokenType.COMMA:
            return right
        if op.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        if op.type == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise LoxRuntimeError(op, "Operands must be two numbers or two strings.")

        self.check_number_operands(op, left, right)
        if op.type == TokenType.MINUS:
            return left - right
        if op.type == TokenType.STAR:
            return left * right
        if op.type == TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError(op, "Division by zero.")
            return left / right
        if op.type == TokenType.GREATER:
            return left > right
        if op.type == TokenType.GREATER_EQUAL:
            return left >= right
        if op.type == TokenType.LESS:
            return left < right
        if op.type == TokenType.LESS_EQUAL:
            return left <= right
        raise LoxRuntimeError(op, f"Unknown operator '{op.lexeme}'.")

    def check_number_operands(self, operator: Token, *operands: Any):
        for operand in operands:
            if not isinstance(operand, float):
                if len(operands) == 1:
                    raise LoxRuntimeError(operator, "Operand must be a number.")
                raise LoxRuntimeError(operator, "Operands must be numbers.")

    def evaluate_call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

        arguments = [self.evaluate(argument) for argument in expr.arguments]
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}."
            )

        if self.debug_level >= 1:
            self.debug(f"call {stringify(callee)} with {len(arguments)} argument(s)")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.")


class Lox:
    """One interpreter session: shared globals, one error sink.

    The REPL keeps a single session for its whole lifetime so that
    declarations from earlier lines stay visible.
    """
    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.out = out
        self.reporter = ErrorReporter(err)
        self.interpreter = Interpreter(out=out, reporter=self.reporter,
                                       debug_level=debug_level, debug_file=debug_file)

    def run(self, source: str):
        statements = parse_program(source, self.reporter)
        # Warnings alone do not stop the program.
        if self.reporter.had_critical_error:
            return

        try:
            Resolver(self.interpreter, self.reporter).resolve(statements)
        except RecursionError:
            # no token survives the unwind; blame the last line
            self.reporter.error(source.count('\n') + 1, "Too much nesting.")
        if self.reporter.had_critical_error:
            return

        # A lone expression echoes its value.
        if len(statements) == 1 and isinstance(statements[0], Expression):
            self.interpreter.interpret_expression(statements[0].expression)
        else:
            self.interpreter.interpret(statements)

    def run_file(self, path: str):
        self.run(Path(path).read_text(encoding='utf-8'))

    def run_prompt(self):
        while True:
            try:
                line = builtins.input('> ')
            except EOFError:
                break
            self.run(line)
            self.reporter.reset()

    def print_ast(self, source: str):
        statements = parse_program(source, self.reporter)
        if self.reporter.had_critical_error:
            return
        printer = AstPrinter()
        for stmt in statements:
            print(printer.print(stmt), file=self.out)

    def close(self):
        self.interpreter.close()


def run_program(source: str, out: Optional[TextIO] = None, err: Optional[TextIO] = None,
                debug_level: int = 0) -> Lox:
    """Convenience function to scan, parse, resolve and run a Lox program from source."""
    lox = Lox(out=out, err=err, debug_level=debug_level)
    try:
        lox.run(source)
    finally:
        lox.close()
    return lox


def run_file(file_path: str, debug_level: int = 0) -> Lox:
    """Run a Lox file, returning the session so callers can inspect its error flags."""
    lox = Lox(debug_level=debug_level)
    try:
        lox.run_file(file_path)
    finally:
        lox.close()
    return lox
