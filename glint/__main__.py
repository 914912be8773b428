"""CLI entry point for the Glint interpreter.

Usage:
    python -m glint [-v|-vv|-vvv] [--max-depth N] [program_file]
    python -m glint [-v...] --emit-ast <program_file>
    python -m glint [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .glint file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file
  --max-depth   Maximum call depth before a StackOverflow error

Without a program file an interactive session is started: each line is
run as soon as it is entered and errors are reported without ending the
session. Debug information is written to `debug.txt` in the current
directory when verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast_json import ast_to_obj, ast_from_obj
from .ast import ExprStmt
from .errors import GlintError, GlintRuntimeError
from .interpreter import Interpreter, MAX_CALL_DEPTH
from .parser import parse_program
from .types import to_string

EXIT_DATA_ERROR = 65
EXIT_RUNTIME_ERROR = 70


def report(error: GlintError):
    print(str(error), file=sys.stderr)


def exit_code(error: GlintError) -> int:
    return EXIT_RUNTIME_ERROR if isinstance(error, GlintRuntimeError) else EXIT_DATA_ERROR


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def repl(interpreter: Interpreter, prompt: str = '> '):
    while True:
        try:
            line = input(prompt)
        except EOFError:
            print()
            return
        try:
            program = parse_program(line)
            result = interpreter.run(program)
        except GlintError as e:
            report(e)
            continue
        if program.body and isinstance(program.body[-1], ExprStmt) and result is not None:
            print(to_string(result))


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(prog='glint', description="Glint language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--max-depth', type=int, default=MAX_CALL_DEPTH, dest='max_depth',
                        help=f'maximum call depth (default: {MAX_CALL_DEPTH})')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='GLINT_FILE', help='emit AST JSON for the given .glint file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Glint program file (.glint) to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        try:
            ast_program = parse_program(source)
        except GlintError as e:
            report(e)
            sys.exit(exit_code(e))
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(ast_program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    interpreter = Interpreter(debug_level=args.v, max_call_depth=args.max_depth)
    try:
        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            program = ast_from_obj(data)
        elif args.program:
            program = None
            source = read_source(Path(args.program))
        else:
            repl(interpreter)
            return

        try:
            if program is None:
                program = parse_program(source)
            interpreter.run(program)
        except GlintError as e:
            report(e)
            sys.exit(exit_code(e))
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
