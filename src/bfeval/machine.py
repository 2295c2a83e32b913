from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Tuple

import numpy as np
from numba import njit

from .compiler import (
    Add,
    Clear,
    Input,
    LoopEnd,
    LoopStart,
    MoveLeft,
    MoveRight,
    Output,
    Program,
    ScanLeft,
    ScanRight,
    Sub,
)
from .errors import make_input_error, make_tape_fault_error

logger = logging.getLogger(__name__)

TAPE_SIZE = 30000
BATCH_STEPS = 1 << 22

# Opcodes understood by _run_batch.
OP_MOVE = 0
OP_ADD = 1
OP_OUTPUT = 2
OP_INPUT = 3
OP_LOOP_START = 4
OP_LOOP_END = 5
OP_CLEAR = 6
OP_SCAN_LEFT = 7
OP_SCAN_RIGHT = 8

# Stop reasons returned by _run_batch.
STOP_OUTPUT = 1
STOP_INPUT = 2
STOP_END = 3
STOP_BATCH = 4
STOP_FAULT = 5


@njit(cache=True)
def _run_batch(ops, args, memory, pc, pointer, max_steps):
    """
    Run at most ``max_steps`` instructions starting at ``pc``.

    Stops before executing an output or input instruction so the caller can
    perform the I/O, and stops on a tape fault with ``pointer`` holding the
    out-of-range cursor and ``pc`` the faulting instruction.
    """
    stop_reason = 0
    mem_len = len(memory)
    prog_len = len(ops)
    steps = 0

    while pc < prog_len and steps < max_steps:
        op = ops[pc]

        if op == OP_MOVE:
            pointer += args[pc]
            if pointer < 0 or pointer >= mem_len:
                stop_reason = STOP_FAULT
                break
        elif op == OP_ADD:
            memory[pointer] = (memory[pointer] + args[pc]) & 255
        elif op == OP_LOOP_START:
            if memory[pointer] == 0:
                pc = args[pc]
        elif op == OP_LOOP_END:
            if memory[pointer] != 0:
                pc = args[pc]
        elif op == OP_CLEAR:
            memory[pointer] = 0
        elif op == OP_SCAN_RIGHT:
            while memory[pointer] != 0:
                pointer += 1
                if pointer >= mem_len:
                    stop_reason = STOP_FAULT
                    break
            if stop_reason == STOP_FAULT:
                break
        elif op == OP_SCAN_LEFT:
            while memory[pointer] != 0:
                pointer -= 1
                if pointer < 0:
                    stop_reason = STOP_FAULT
                    break
            if stop_reason == STOP_FAULT:
                break
        elif op == OP_OUTPUT:
            stop_reason = STOP_OUTPUT
            break
        elif op == OP_INPUT:
            stop_reason = STOP_INPUT
            break

        pc += 1
        steps += 1

    if stop_reason == 0:
        if pc >= prog_len:
            stop_reason = STOP_END
        else:
            stop_reason = STOP_BATCH

    return pc, pointer, stop_reason, steps


def encode(program: Program) -> Tuple[np.ndarray, np.ndarray]:
    """Flatten a resolved Program into parallel opcode and argument arrays."""
    ops = np.zeros(len(program), dtype=np.int32)
    args = np.zeros(len(program), dtype=np.int64)
    for i, ins in enumerate(program):
        if isinstance(ins, MoveRight):
            ops[i], args[i] = OP_MOVE, ins.n
        elif isinstance(ins, MoveLeft):
            ops[i], args[i] = OP_MOVE, -ins.n
        elif isinstance(ins, Add):
            ops[i], args[i] = OP_ADD, ins.n
        elif isinstance(ins, Sub):
            ops[i], args[i] = OP_ADD, -ins.n
        elif isinstance(ins, Output):
            ops[i] = OP_OUTPUT
        elif isinstance(ins, Input):
            ops[i] = OP_INPUT
        elif isinstance(ins, LoopStart):
            ops[i], args[i] = OP_LOOP_START, ins.target
        elif isinstance(ins, LoopEnd):
            ops[i], args[i] = OP_LOOP_END, ins.target
        elif isinstance(ins, Clear):
            ops[i] = OP_CLEAR
        elif isinstance(ins, ScanLeft):
            ops[i] = OP_SCAN_LEFT
        elif isinstance(ins, ScanRight):
            ops[i] = OP_SCAN_RIGHT
        else:
            raise TypeError(f"not an instruction: {ins!r}")
    return ops, args


class Machine:
    """
    Tape machine for a resolved Program.

    The tape is a fresh zeroed ``uint8`` array for every run. Execution
    happens in compiled batches; between batches control comes back here to
    write output in program order.
    """

    def __init__(self, tape_size: int = TAPE_SIZE, print_live: bool = False,
                 sink: Optional[TextIO] = None):
        if tape_size <= 0:
            raise ValueError(f"tape_size must be positive, got {tape_size}")
        self.tape_size = tape_size
        self.print_live = print_live
        self.sink = sink
        self.memory = np.zeros(tape_size, dtype=np.uint8)
        self.pc = 0
        self.pointer = 0
        self.steps = 0

    def reset(self) -> None:
        self.memory = np.zeros(self.tape_size, dtype=np.uint8)
        self.pc = 0
        self.pointer = 0
        self.steps = 0

    def run(self, program: Program) -> bytes:
        """Execute ``program`` to completion and return the bytes it output."""
        self.reset()
        ops, args = encode(program)
        output = bytearray()
        sink = None
        if self.print_live:
            sink = self.sink if self.sink is not None else sys.stdout

        while True:
            pc, pointer, stop_reason, steps = _run_batch(
                ops, args, self.memory, self.pc, self.pointer, BATCH_STEPS
            )
            self.pc, self.pointer = int(pc), int(pointer)
            self.steps += int(steps)

            if stop_reason == STOP_END:
                break
            if stop_reason == STOP_OUTPUT:
                byte = int(self.memory[self.pointer])
                output.append(byte)
                if sink is not None:
                    sink.write(chr(byte))
                    sink.flush()
                self.pc += 1
                self.steps += 1
            elif stop_reason == STOP_INPUT:
                raise make_input_error(pc=self.pc)
            elif stop_reason == STOP_FAULT:
                raise make_tape_fault_error(pc=self.pc, cursor=self.pointer, tape_size=self.tape_size)

        logger.debug("ran %d instructions in %d steps, %d bytes out",
                     len(program), self.steps, len(output))
        return bytes(output)
