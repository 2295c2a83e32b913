from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from .errors import make_unbalanced_bracket_error, make_unknown_instruction_error
from .lexer import (
    CLEAR,
    DECREMENT,
    INCREMENT,
    INPUT,
    LOOP_END,
    LOOP_START,
    MOVE_LEFT,
    MOVE_RIGHT,
    OUTPUT,
    SCAN_LEFT,
    SCAN_RIGHT,
)

logger = logging.getLogger(__name__)


# ---------------- Instructions ----------------
@dataclass(frozen=True)
class MoveRight:
    n: int  # cursor += n


@dataclass(frozen=True)
class MoveLeft:
    n: int  # cursor -= n


@dataclass(frozen=True)
class Add:
    n: int  # 0..255, wraps


@dataclass(frozen=True)
class Sub:
    n: int  # 0..255, wraps


@dataclass(frozen=True)
class Output:
    pass


@dataclass(frozen=True)
class Input:
    pass


@dataclass(frozen=True)
class LoopStart:
    target: Optional[int] = None  # index of the matching LoopEnd


@dataclass(frozen=True)
class LoopEnd:
    target: Optional[int] = None  # index of the matching LoopStart


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class ScanLeft:
    pass


@dataclass(frozen=True)
class ScanRight:
    pass


Instruction = Union[
    MoveRight, MoveLeft, Add, Sub, Output, Input,
    LoopStart, LoopEnd, Clear, ScanLeft, ScanRight,
]
Program = List[Instruction]

_SINGLE = {
    OUTPUT: Output,
    INPUT: Input,
    LOOP_START: LoopStart,
    LOOP_END: LoopEnd,
    CLEAR: Clear,
    SCAN_LEFT: ScanLeft,
    SCAN_RIGHT: ScanRight,
}


class Compiler:
    """
    Two-pass compiler from rewritten text to a resolved Program.

    Pass 1 collapses runs of ``><`` and ``+-`` into one instruction each
    (dropping runs that cancel out) and emits placeholder loop instructions.
    Pass 2 pairs every LoopStart with its LoopEnd by index, in both
    directions.

    ``positions[i]`` is the offset in the input text of the character that
    produced ``program[i]``; it is only used to point errors at the source.
    """

    def __init__(self):
        self.code = ''
        self.program: Program = []
        self.positions: List[int] = []

    def compile(self, code: str) -> Program:
        self.code = code
        self.program = []
        self.positions = []
        self.emit()
        self.resolve()
        logger.debug("compiled %d chars into %d instructions", len(code), len(self.program))
        return self.program

    # ===== Pass 1 =====

    def emit(self) -> Program:
        code = self.code
        i = 0
        while i < len(code):
            ch = code[i]
            start = i
            if ch == MOVE_RIGHT or ch == MOVE_LEFT:
                net = 0
                while i < len(code) and code[i] in (MOVE_RIGHT, MOVE_LEFT):
                    net += 1 if code[i] == MOVE_RIGHT else -1
                    i += 1
                if net > 0:
                    self._push(MoveRight(net), start)
                elif net < 0:
                    self._push(MoveLeft(-net), start)
                continue
            if ch == INCREMENT or ch == DECREMENT:
                net = 0
                while i < len(code) and code[i] in (INCREMENT, DECREMENT):
                    net += 1 if code[i] == INCREMENT else -1
                    i += 1
                # Multiples of 256 are a no-op on an 8-bit cell.
                if net > 0 and net & 0xFF:
                    self._push(Add(net & 0xFF), start)
                elif net < 0 and -net & 0xFF:
                    self._push(Sub(-net & 0xFF), start)
                continue
            kind = _SINGLE.get(ch)
            if kind is None:
                raise make_unknown_instruction_error(source=code, position=i)
            self._push(kind(), start)
            i += 1
        return self.program

    def _push(self, instruction: Instruction, position: int) -> None:
        self.program.append(instruction)
        self.positions.append(position)

    # ===== Pass 2 =====

    def resolve(self) -> Program:
        program = self.program
        for i, ins in enumerate(program):
            if not isinstance(ins, LoopStart):
                continue
            depth = 1
            j = i
            while depth:
                j += 1
                if j >= len(program):
                    raise make_unbalanced_bracket_error(
                        source=self.code, position=self.positions[i], bracket=LOOP_START
                    )
                if isinstance(program[j], LoopStart):
                    depth += 1
                elif isinstance(program[j], LoopEnd):
                    depth -= 1
            program[i] = LoopStart(j)
            program[j] = LoopEnd(i)

        for i, ins in enumerate(program):
            if isinstance(ins, LoopEnd) and ins.target is None:
                raise make_unbalanced_bracket_error(
                    source=self.code, position=self.positions[i], bracket=LOOP_END
                )
        return program


def compile_program(code: str) -> Program:
    """Compile normalized, rewritten text. See :class:`Compiler`."""
    return Compiler().compile(code)
