"""CLI entry point for the Lox interpreter.

Usage:
    python -m pylox [-v|-vv|-vvv] [--debug-file PATH] [script]
    python -m pylox [-v...] --print-ast [script]

Options:
  -v            Increase debug verbosity (can be repeated)
  --debug-file  Where trace output goes when verbosity is above zero
  --print-ast   Print the parsed syntax tree instead of running the program

Without a script an interactive prompt is started. Exit codes: 64 for
bad usage, 65 when the program has static errors, 66 when the script
cannot be read and 70 when it stopped on a runtime error.
"""

import argparse
import sys
from pathlib import Path

from .interpreter import Lox

EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70

# Lox calls nest several Python frames deep.
RECURSION_LIMIT = 10000


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='pylox', description="Lox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', default='debug.txt', help='trace file written when -v is given')
    parser.add_argument('--print-ast', action='store_true', help='print the syntax tree instead of running')
    parser.add_argument('script', nargs='*', help='Lox script (.lox) to execute')
    args = parser.parse_args(argv)

    if len(args.script) > 1:
        parser.print_usage(sys.stdout)
        sys.exit(EX_USAGE)

    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    lox = Lox(debug_level=args.v, debug_file=args.debug_file)
    try:
        if not args.script:
            run_prompt(lox, args.print_ast)
            return

        script = Path(args.script[0])
        try:
            source = script.read_text(encoding='utf-8')
        except OSError as e:
            print(f"Error: cannot read {script}: {e.strerror}", file=sys.stderr)
            sys.exit(EX_NOINPUT)

        if args.print_ast:
            lox.print_ast(source)
        else:
            lox.run(source)
    finally:
        lox.close()

    if lox.reporter.had_critical_error:
        sys.exit(EX_DATAERR)
    if lox.reporter.had_runtime_error:
        sys.exit(EX_SOFTWARE)


def run_prompt(lox: Lox, print_ast: bool) -> None:
    if not print_ast:
        lox.run_prompt()
        return
    while True:
        try:
            line = input('> ')
        except EOFError:
            break
        lox.print_ast(line)
        lox.reporter.reset()


if __name__ == '__main__':
    main()
