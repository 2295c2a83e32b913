#!/usr/bin/env python3
"""
Tests for the tape machine: wraparound arithmetic, loops, scans and faults.
"""

import sys
import os
import io
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest

from bfeval.compiler import Add, Clear, MoveLeft, MoveRight, Output, ScanLeft, Sub, compile_program
from bfeval.errors import TapeFaultError, UnimplementedInstructionError
from bfeval.lexer import preprocess
from bfeval.machine import OP_ADD, OP_LOOP_END, OP_LOOP_START, OP_MOVE, TAPE_SIZE, Machine, encode


def run_bf(code, **kwargs):
    machine = Machine(**kwargs)
    return machine.run(compile_program(preprocess(code))), machine


def test_fresh_tape():
    machine = Machine()
    assert machine.memory.dtype == np.uint8
    assert len(machine.memory) == TAPE_SIZE == 30000
    assert not machine.memory.any()


def test_encode_signed_arguments():
    ops, args = encode([MoveRight(3), MoveLeft(2), Add(5), Sub(7)])
    assert list(ops) == [OP_MOVE, OP_MOVE, OP_ADD, OP_ADD]
    assert list(args) == [3, -2, 5, -7]


def test_encode_loop_targets():
    ops, args = encode(compile_program("[[]]"))
    assert list(ops) == [OP_LOOP_START, OP_LOOP_START, OP_LOOP_END, OP_LOOP_END]
    assert list(args) == [3, 2, 1, 0]


def test_empty_program_outputs_nothing():
    out, machine = run_bf("")
    assert out == b""
    assert machine.steps == 0


def test_output_byte_order():
    out, _ = run_bf("+.+.+.")
    assert out == b"\x01\x02\x03"


def test_add_wraps_past_255():
    out, _ = run_bf("-" + "." + "+" * 2 + ".")
    assert out == bytes([255, 1])


def test_sub_wraps_below_zero():
    out, machine = run_bf("---.")
    assert out == bytes([253])
    assert machine.memory[0] == 253


def test_large_arithmetic_runs():
    out, _ = run_bf("+" * 1000 + ".")
    assert out == bytes([1000 % 256])


def test_loop_skipped_when_cell_is_zero():
    out, _ = run_bf("[+.]+.")
    assert out == b"\x01"


def test_loop_multiplication():
    # 8 * 8 = 64, then +1 -> 'A'
    out, _ = run_bf("++++++++[>++++++++<-]>+.")
    assert out == b"A"


def test_clear_idiom_zeroes_cell():
    for code in ("+++++[-]", "+++++[+]", "-[-]", "[-]"):
        out, machine = run_bf(code)
        assert out == b""
        assert machine.memory[0] == 0


def test_scan_right_stops_on_zero():
    _, machine = run_bf("+>+>+<<[>]")
    assert machine.pointer == 3


def test_scan_left_stops_on_zero():
    _, machine = run_bf(">+>+>+[<]")
    assert machine.pointer == 0


def test_scan_on_zero_cell_does_not_move():
    _, machine = run_bf(">>[<][>]")
    assert machine.pointer == 2


def test_move_past_left_edge_faults():
    with pytest.raises(TapeFaultError) as exc:
        run_bf("<")
    assert exc.value.cursor == -1
    assert exc.value.pc == 0


def test_move_past_right_edge_faults():
    with pytest.raises(TapeFaultError) as exc:
        run_bf(">" * 10, tape_size=10)
    assert exc.value.cursor == 10


def test_scan_off_tape_faults():
    with pytest.raises(TapeFaultError):
        run_bf("+>+>+>+[>]", tape_size=4)
    with pytest.raises(TapeFaultError):
        Machine().run([Add(1), ScanLeft()])


def test_input_is_unimplemented():
    with pytest.raises(UnimplementedInstructionError) as exc:
        run_bf("+.,.")
    assert exc.value.pc == 2


def test_live_output_goes_to_sink():
    sink = io.StringIO()
    out, _ = run_bf("++++++++[>++++++++<-]>+.+.", print_live=True, sink=sink)
    assert out == b"AB"
    assert sink.getvalue() == "AB"


def test_no_live_output_by_default(capsys):
    run_bf("++++++++[>++++++++<-]>+.")
    assert capsys.readouterr().out == ""


def test_live_output_defaults_to_stdout(capsys):
    run_bf("++++++++[>++++++++<-]>+.", print_live=True)
    assert capsys.readouterr().out == "A"


def test_state_is_fresh_per_run():
    machine = Machine()
    program = compile_program("+++>")
    machine.run(program)
    machine.run(program)
    assert machine.memory[0] == 3
    assert machine.pointer == 1


def test_invalid_tape_size():
    with pytest.raises(ValueError):
        Machine(tape_size=0)


def test_clear_instruction_directly():
    assert Machine().run([Add(9), Clear(), Output()]) == b"\x00"
