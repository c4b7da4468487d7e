"""CLI entry point for the gcalc interpreter.

Usage:
    python -m gcalc [-v|-vv|-vvv] [--max-depth N] [--session FILE] <program_file>
    python -m gcalc [-v...] -e STATEMENT [-e STATEMENT ...]
    python -m gcalc --emit-ast STATEMENT
    python -m gcalc [-v...] --ast <ast_json_file>
    python -m gcalc [-v...]                    (statements read from stdin)

Options:
  -v              Increase debug verbosity (can be repeated)
  -e, --eval      Execute a statement given on the command line
  --emit-ast      Parse a statement and print its AST as JSON
  --ast           Execute a previously emitted AST JSON file
  --max-depth     Maximum user function call depth
  --session       JSON file of saved definitions, loaded before and written
                  after running

A program file holds one statement per line; blank lines are skipped. Each
expression prints its value, each definition prints `defined name/arity`.
Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path

from .ast_json import ast_to_obj, ast_from_obj
from .errors import CalcError
from .interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter
from .parser import parse_statement


def execute_lines(interpreter: Interpreter, lines) -> bool:
    """Run statements, printing results; returns False on the first error."""
    for line in lines:
        if not line.strip():
            continue
        try:
            result = interpreter.execute(line)
        except CalcError as e:
            print(e.format(line), file=sys.stderr)
            return False
        print(interpreter.describe(result))
    return True


def load_session(interpreter: Interpreter, path: Path) -> None:
    if not path.exists():
        return
    with open(path, 'r', encoding='utf-8') as f:
        sources = json.load(f)
    interpreter.restore(sources)


def save_session(interpreter: Interpreter, path: Path) -> None:
    with open(path, 'w', encoding='utf-8') as out:
        json.dump(list(interpreter.snapshot()), out, ensure_ascii=False, indent=2)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="gcalc expression language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_CALL_DEPTH,
                        help='maximum user function call depth')
    parser.add_argument('--session', metavar='SESSION_FILE',
                        help='load saved definitions from and save them to this JSON file')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-e', '--eval', metavar='STATEMENT', action='append', help='execute a statement')
    group.add_argument('--emit-ast', metavar='STATEMENT', help='print the AST JSON for a statement')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute a statement AST from a JSON file')
    parser.add_argument('program', nargs='?', help='gcalc program file, one statement per line')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        try:
            stmt = parse_statement(args.emit_ast)
        except CalcError as e:
            print(e.format(args.emit_ast), file=sys.stderr)
            sys.exit(1)
        print(json.dumps(ast_to_obj(stmt), ensure_ascii=False, indent=2))
        return

    interpreter = Interpreter(debug_level=args.v, max_call_depth=args.max_depth)
    session_path = Path(args.session) if args.session else None
    try:
        if session_path is not None:
            try:
                load_session(interpreter, session_path)
            except CalcError as e:
                print(f"Error loading session {session_path}: {e}", file=sys.stderr)
                sys.exit(1)

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            stmt = ast_from_obj(data)
            try:
                result = interpreter.run(stmt)
            except CalcError as e:
                print(e.format(), file=sys.stderr)
                sys.exit(1)
            print(interpreter.describe(result))
        elif args.eval:
            ok = execute_lines(interpreter, args.eval)
            if not ok:
                sys.exit(1)
        elif args.program:
            program_file = Path(args.program)
            if not program_file.exists():
                print(f"Error: file {program_file} not found", file=sys.stderr)
                sys.exit(1)
            with open(program_file, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
            if not execute_lines(interpreter, lines):
                sys.exit(1)
        else:
            # Interactive use: keep going after errors
            for line in sys.stdin:
                execute_lines(interpreter, [line.rstrip('\n')])

        if session_path is not None:
            save_session(interpreter, session_path)
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
