"""Recursive-descent parser for the Lox language.

Each grammar rule is a method; precedence climbs from `assignment` down
to `primary`. Errors are reported to the session's ErrorReporter:

* A critical error raises `ParseError`, which unwinds to the enclosing
  `declaration()`. The parser then synchronizes by skipping tokens until
  it has just passed a `;` or is looking at a keyword that starts a
  statement, and parsing resumes from there.
* Problems that do not confuse the parser (too many parameters, an
  invalid assignment target) are reported without unwinding.
* A binary operator with no left operand is only a warning; the operator
  and its right operand are still parsed and produce a `Binary` node
  whose `left` is None.

`for` loops are desugared here into blocks and `while` loops, so the
later stages never see them.
"""

from __future__ import annotations

from typing import List, Optional

from .ast import (
    Expr, Stmt, FunctionKind,
    Assign, Binary, Logical, Unary, Ternary, Call, Get, Set, This, Super,
    Grouping, Literal, Lambda, Variable,
    Expression, Print, Var, Block, If, While, Function, Return, Break, Class,
)
from .errors import ErrorReporter, ParseError
from .lexer import Scanner
from .tokens import Token, TokenType

MAX_ARGUMENTS = 255

STATEMENT_KEYWORDS = {
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
    TokenType.BREAK,
}


class Parser:
    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None):
        self.tokens = tokens
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.current = 0
        self.loop_depth = 0

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    # Declarations

    def declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            # `fun` followed by a name declares a function; otherwise it starts a lambda
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.function(FunctionKind.FUNCTION)
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None
        except RecursionError:
            self.error(self.peek(), "Too much nesting.")
            self.synchronize()
            return None

    def class_declaration(self) -> Class:
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous())

        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods: List[Function] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            if self.match(TokenType.CLASS):
                methods.append(self.function(FunctionKind.STATIC_METHOD))
            elif self.check(TokenType.IDENTIFIER) and self.check_next(TokenType.LEFT_BRACE):
                methods.append(self.getter())
            else:
                methods.append(self.function(FunctionKind.METHOD))
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")

        return Class(name, superclass, methods)

    def function(self, kind: FunctionKind) -> Function:
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind.value} name.")
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind.value} name.")
        params = self.parameters()
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind.value} body.")
        body = self.function_body()
        return Function(name, params, body, kind)

    def getter(self) -> Function:
        name = self.consume(TokenType.IDENTIFIER, "Expect getter name.")
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before getter body.")
        body = self.function_body()
        return Function(name, [], body, FunctionKind.GETTER)

    def parameters(self) -> List[Token]:
        params: List[Token] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def function_body(self) -> List[Stmt]:
        # a loop around the declaration does not reach into the function
        enclosing_loops = self.loop_depth
        self.loop_depth = 0
        try:
            return self.block()
        finally:
            self.loop_depth = enclosing_loops

    def var_declaration(self) -> Var:
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # Statements

    def statement(self) -> Stmt:
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.BREAK):
            return self.break_statement()
        if self.match(TokenType.WHILE):
            return self.loop(self.while_statement)
        if self.match(TokenType.FOR):
            return self.loop(self.for_statement)
        if self.match(TokenType.LEFT_BRACE):
            return Block(self.block())
        return self.expression_statement()

    def loop(self, rule) -> Stmt:
        self.loop_depth += 1
        try:
            return rule()
        finally:
            self.loop_depth -= 1

    def if_statement(self) -> If:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()
        return If(condition, then_branch, else_branch)

    def print_statement(self) -> Print:
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def return_statement(self) -> Return:
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def break_statement(self) -> Break:
        keyword = self.previous()
        if self.loop_depth == 0:
            raise self.error(keyword, "Can't use 'break' outside of a loop.")
        self.consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return Break(keyword)

    def while_statement(self) -> While:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.statement()
        return While(condition, body)

    def for_statement(self) -> Stmt:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        initializer: Optional[Stmt]
        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()

        # for (init; cond; inc) body  =>  { init; while (cond) { body; inc; } }
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def block(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self) -> Expression:
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # Expressions

    def expression(self) -> Expr:
        return self.assignment()

    def assignment(self) -> Expr:
        expr = self.logic_or()

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)

            self.error(equals, "Invalid assignment target.")

        return expr

    def logic_or(self) -> Expr:
        expr = self.logic_and()
        while self.match(TokenType.OR):
            operator = self.previous()
            right = self.logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def logic_and(self) -> Expr:
        expr = self.ternary()
        while self.match(TokenType.AND):
            operator = self.previous()
            right = self.ternary()
            expr = Logical(expr, operator, right)
        return expr

    def ternary(self) -> Expr:
        expr = self.equality()
        if self.match(TokenType.QUESTION_MARK):
            question = self.previous()
            then_expr = self.equality()
            colon = self.consume(TokenType.COLON, "Expect ':' after then branch of ternary expression.")
            else_expr = self.equality()
            return Ternary(expr, question, then_expr, colon, else_expr)
        return expr

    def binary(self, operand, operators, leading=None) -> Expr:
        """Parse a left-associative chain of `operand (operator operand)*`.

        `leading` lists the operators that may not start the chain; they
        default to `operators`.
        """
        expr: Optional[Expr] = None
        if self.check(*(operators if leading is None else leading)):
            self.reporter.warning(self.peek(), "Binary expression missing left operand.")
        else:
            expr = operand()

        while self.match(*operators):
            operator = self.previous()
            right = operand()
            expr = Binary(expr, operator, right)
        return expr

    def equality(self) -> Expr:
        return self.binary(self.comparison, (TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL))

    def comparison(self) -> Expr:
        return self.binary(
            self.term,
            (TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL),
        )

    def term(self) -> Expr:
        # a leading '-' is a unary minus
        return self.binary(self.factor, (TokenType.MINUS, TokenType.PLUS), leading=(TokenType.PLUS,))

    def factor(self) -> Expr:
        return self.binary(self.unary, (TokenType.SLASH, TokenType.STAR))

    def unary(self) -> Expr:
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            right = self.unary()
            return Unary(operator, right)
        return self.call()

    def call(self) -> Expr:
        expr = self.primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: List[Expr] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break
        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def primary(self) -> Expr:
        if self.match(TokenType.FALSE):
            return Literal(False)
        if self.match(TokenType.TRUE):
            return Literal(True)
        if self.match(TokenType.NIL):
            return Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous().literal)
        if self.match(TokenType.THIS):
            return This(self.previous())
        if self.match(TokenType.SUPER):
            keyword = self.previous()
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)
        if self.match(TokenType.IDENTIFIER):
            return Variable(self.previous())
        if self.match(TokenType.FUN):
            return self.lambda_expression()
        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            # (a, b, c) evaluates every operand and yields the last one
            while self.match(TokenType.COMMA):
                operator = self.previous()
                right = self.expression()
                expr = Binary(expr, operator, right)
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self.error(self.peek(), "Expect expression.")

    def lambda_expression(self) -> Lambda:
        keyword = self.previous()
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
        params = self.parameters()
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before lambda body.")
        body = self.function_body()
        return Lambda(keyword, params, body)

    # Token helpers

    def match(self, *types: TokenType) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def check(self, *types: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type in types

    def check_next(self, type_: TokenType) -> bool:
        if self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == type_

    def advance(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def consume(self, type_: TokenType, message: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        self.reporter.error(token, message)
        return ParseError(message)

    def synchronize(self) -> None:
        self.advance()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_KEYWORDS:
                return
            self.advance()


def parse_program(source: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
    """Scan and parse Lox source code into a list of statements.

    Diagnostics go to `reporter`; check its `had_critical_error` flag
    before handing the result to the resolver.
    """
    if reporter is None:
        reporter = ErrorReporter()
    tokens = Scanner(source, reporter).scan_tokens()
    return Parser(tokens, reporter).parse()
