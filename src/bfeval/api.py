from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from .compiler import compile_program
from .errors import make_decode_error
from .lexer import preprocess
from .machine import TAPE_SIZE, Machine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluateOptions:
    print_live: bool = False
    tape_size: int = TAPE_SIZE
    sink: Optional[TextIO] = None
    encoding: str = "utf-8"


@dataclass(frozen=True)
class EvaluateResult:
    output: str
    instructions: int
    steps: int
    compile_ms: float = 0.0
    execute_ms: float = 0.0


def run(source: str, *, options: Optional[EvaluateOptions] = None) -> EvaluateResult:
    opts = EvaluateOptions() if options is None else options
    start = time.time()
    program = compile_program(preprocess(source))
    compiled = time.time()

    machine = Machine(tape_size=opts.tape_size, print_live=opts.print_live, sink=opts.sink)
    raw = machine.run(program)
    end = time.time()
    try:
        text = raw.decode(opts.encoding)
    except UnicodeDecodeError as e:
        raise make_decode_error(output=raw, encoding=opts.encoding, exc=e) from e
    return EvaluateResult(
        output=text,
        instructions=len(program),
        steps=machine.steps,
        compile_ms=(compiled - start) * 1000,
        execute_ms=(end - compiled) * 1000,
    )


def evaluate(source: str, print_live: bool = False) -> str:
    """
    Run a program and return everything it printed.

    With ``print_live`` each output byte is also written to stdout as soon as
    the program produces it. Any failure raises a :class:`~bfeval.errors.BFError`
    subclass and no output is returned.
    """
    return run(source, options=EvaluateOptions(print_live=print_live)).output


def evaluate_file(path: str | Path, *, options: Optional[EvaluateOptions] = None, encoding: str = "utf-8") -> str:
    p = Path(path)
    logger.debug("evaluating %s", p)
    return run(p.read_text(encoding=encoding), options=options).output
