"""
Command-line entry point.

Usage:
    tapevm program.b                    # input bytes from stdin
    tapevm program.b -i data.txt        # input bytes from a file
    tapevm < program.b                  # program from stdin, empty input
    tapevm -e '+[-[<<[+[--->]-[<<<]]]>>>-]>-.---.>..>.<<<<-.<+.>>>>>.>.<<.<-.'
    tapevm --expr=-.                    # inline code starting with '-' needs the = form
    tapevm --debug program.b            # line-oriented debugger
    tapevm --tui program.b              # full-screen debugger
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from pathlib import Path

from .errors import FatalMachineError, InputSourceError, ProgramError
from .interpreter import Interpreter
from .sources import empty_input, iter_bytes, open_input_source
from .stepper import DebugStepper, NormalStepper

logger = logging.getLogger("tapevm")

EXIT_PROGRAM_ERROR = 1
EXIT_FATAL = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Byte-tape machine interpreter with a stepping debugger",
        prog="tapevm",
    )
    parser.add_argument("file", nargs="?", help="Program source file")
    parser.add_argument("-e", "--expr", help="Program source given inline")
    parser.add_argument("-i", "--input",
                        help="Program input file, '-' for stdin "
                             "(default: stdin; empty when stdin carries the program or with --tui)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--debug", action="store_true",
                      help="Step through the program with the line debugger")
    mode.add_argument("--tui", action="store_true",
                      help="Step through the program with the TUI debugger")
    mode.add_argument("--dump", action="store_true",
                      help="Print the parsed program as normalized source and exit")
    parser.add_argument("--stats", action="store_true",
                        help="Print run counters to stderr")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    return parser


def _read_source(args, parser) -> bytes:
    if args.file and args.expr:
        parser.error("give a program file or -e, not both")
    if args.expr is not None:
        return args.expr.encode("utf-8")
    if args.file:
        path = Path(args.file)
        if not path.exists():
            parser.error(f"file not found: {path}")
        return path.read_bytes()
    return sys.stdin.buffer.read()


def _open_operator(stdin_busy: bool):
    """Where debugger commands are read from."""
    if stdin_busy:
        try:
            return open("/dev/tty")
        except OSError as e:
            raise InputSourceError(f"no terminal for debugger commands: {e}") from e
    return sys.stdin


def _select_input(args, source_from_stdin: bool, parser):
    if args.tui:
        # The TUI owns the terminal; its stdin cannot double as program input.
        if args.input == "-":
            parser.error("--tui cannot read program input from stdin")
        if args.input is None:
            return empty_input()
    if args.input is None and source_from_stdin:
        return empty_input()
    return open_input_source(args.input)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    source_from_stdin = not args.file and args.expr is None
    code = _read_source(args, parser)
    logger.debug("Read %d bytes of code", len(code))

    interpreter = Interpreter(code)
    if args.dump:
        print(interpreter.program.to_source())
        return 0

    with contextlib.ExitStack() as resources:
        try:
            stream = _select_input(args, source_from_stdin, parser)
            input_on_stdin = stream is getattr(sys.stdin, "buffer", None)
            if not input_on_stdin:
                resources.enter_context(stream)
            operator = None
            if args.debug:
                operator = _open_operator(source_from_stdin or input_on_stdin)
                if operator is not sys.stdin:
                    resources.enter_context(operator)
        except InputSourceError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_PROGRAM_ERROR
        stdin = iter_bytes(stream)

        try:
            if args.tui:
                from .debugger import run_tui
                output = run_tui(interpreter, stdin)
            elif args.debug:
                stepper = DebugStepper(read_line=lambda request: _prompt(operator))
                output = interpreter.run(stdin, stepper)
            else:
                output = interpreter.run(stdin, NormalStepper())
        except ProgramError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_PROGRAM_ERROR
        except FatalMachineError as e:
            print(f"Fatal: {e}", file=sys.stderr)
            return EXIT_FATAL
        finally:
            if args.stats and interpreter.stats is not None:
                print(interpreter.stats.summary(), file=sys.stderr)

    sys.stdout.write(output)
    sys.stdout.flush()
    return 0


def _prompt(operator) -> str | None:
    print("(tapevm) ", end="", flush=True)
    line = operator.readline()
    return line if line else None


if __name__ == "__main__":
    sys.exit(main())
