from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .api import EvaluateOptions, run
from .errors import BFError
from .machine import TAPE_SIZE


def _read_source(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bfeval",
        description="Compile and run a Brainfuck program.",
    )
    parser.add_argument("file", nargs="?", help="program file (default: stdin)")
    parser.add_argument("--live", action=argparse.BooleanOptionalAction, default=True,
                        help="stream output while the program runs (default: on)")
    parser.add_argument("--tape-size", type=int, default=TAPE_SIZE,
                        help=f"number of tape cells (default {TAPE_SIZE})")
    parser.add_argument("--timing", action="store_true", help="report compile/execute time on stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    if args.tape_size <= 0:
        parser.error("--tape-size must be positive")

    try:
        source = _read_source(args.file)
    except OSError as e:
        print(f"Couldn't read {args.file}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Couldn't read {args.file}: not valid UTF-8 (byte {e.start})", file=sys.stderr)
        return 1

    options = EvaluateOptions(print_live=args.live, tape_size=args.tape_size, sink=sys.stdout)
    try:
        result = run(source, options=options)
    except BFError as e:
        sys.stdout.flush()
        print(e, file=sys.stderr)
        return 1

    if not args.live:
        sys.stdout.write(result.output)
        sys.stdout.flush()

    if args.timing:
        print(f"Compilation took {result.compile_ms:.2f} ms "
              f"({result.instructions} instructions)", file=sys.stderr)
        print(f"Execution took {result.execute_ms:.2f} ms "
              f"({result.steps} steps)", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
