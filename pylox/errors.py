import sys
from typing import Any, Optional, TextIO, Union

from pylox.tokens import Token, TokenType


class LoxRuntimeError(Exception):
    """Exception type used to propagate Lox runtime errors."""
    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message


class ParseError(Exception):
    """Internal exception used by the parser to unwind to a statement boundary."""


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value


class BreakSignal(Exception):
    """Internal exception to leave the innermost while loop."""
    def __init__(self):
        super().__init__('break')


class ErrorReporter:
    """Collects static diagnostics and runtime errors for one session.

    Static diagnostics come from the scanner, parser and resolver and are
    either critical errors, which stop the program from running, or
    warnings. Every diagnostic is written to `stream` as it is reported.
    """
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self.had_critical_error = False
        self.had_runtime_error = False

    def error(self, where: Union[Token, int], message: str) -> None:
        self.report(where, message, critical=True)

    def warning(self, where: Union[Token, int], message: str) -> None:
        self.report(where, message, critical=False)

    def runtime_error(self, error: LoxRuntimeError) -> None:
        self.write(f"[line {error.token.line}] RuntimeError: {error.message}")
        self.had_runtime_error = True

    def report(self, where: Union[Token, int], message: str, critical: bool) -> None:
        if isinstance(where, Token):
            line = where.line
            location = ' at end' if where.type == TokenType.EOF else f" at '{where.lexeme}'"
        else:
            line = where
            location = ''
        label = 'Error' if critical else 'Warning'
        self.write(f"[line {line}] {label}{location}: {message}")
        if critical:
            self.had_critical_error = True

    def reset(self) -> None:
        # the REPL gets a fresh start on every line
        self.had_critical_error = False
        self.had_runtime_error = False

    def write(self, text: str) -> None:
        print(text, file=self.stream if self.stream is not None else sys.stderr)
