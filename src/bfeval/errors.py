from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def _build_context(source: str, position: int, *, context: int = 20) -> str:
    start = max(0, position - context)
    end = min(len(source), position + context + 1)
    snippet = source[start:end]
    caret = ' ' * (position - start) + '^'
    return f"  {snippet}\n  {caret}"


def _hint_for(message: str) -> Optional[str]:
    msg = message.lower()
    if 'unmatched' in msg and "'['" in msg:
        return 'Every "[" needs a closing "]" later in the program.'
    if 'unmatched' in msg and "']'" in msg:
        return 'Check for an extra "]" or a missing "[" before it.'
    if 'unknown instruction' in msg:
        return 'Run the source through normalize() and rewrite_idioms() before compiling.'
    return None


@dataclass
class BFError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class MalformedProgramError(BFError):
    position: int
    context: str


@dataclass
class UnknownInstructionError(MalformedProgramError):
    pass


@dataclass
class UnbalancedBracketError(MalformedProgramError):
    pass


@dataclass
class UnimplementedInstructionError(BFError):
    pc: int


@dataclass
class TapeFaultError(BFError):
    pc: int
    cursor: int


@dataclass
class OutputDecodeError(BFError):
    output: bytes


def _compile_message(message: str, source: str, position: int) -> tuple[str, str]:
    ctx = _build_context(source, position)
    hint = _hint_for(message)
    hint_block = f"\nHint: {hint}" if hint else ""
    return f"CompileError: {message} (position {position})\n{ctx}{hint_block}", ctx


def make_unknown_instruction_error(*, source: str, position: int) -> UnknownInstructionError:
    text, ctx = _compile_message(
        f"unknown instruction {source[position]!r}", source, position
    )
    return UnknownInstructionError(message=text, position=position, context=ctx)


def make_unbalanced_bracket_error(*, source: str, position: int, bracket: str) -> UnbalancedBracketError:
    text, ctx = _compile_message(f"unmatched '{bracket}'", source, position)
    return UnbalancedBracketError(message=text, position=position, context=ctx)


def make_tape_fault_error(*, pc: int, cursor: int, tape_size: int) -> TapeFaultError:
    side = 'left' if cursor < 0 else 'right'
    return TapeFaultError(
        message=(
            f"TapeFault: cursor moved off the {side} end of the tape "
            f"(cursor {cursor}, tape size {tape_size}, instruction {pc})"
        ),
        pc=pc,
        cursor=cursor,
    )


def make_input_error(*, pc: int) -> UnimplementedInstructionError:
    return UnimplementedInstructionError(
        message=f"Unimplemented: input instruction executed at instruction {pc}",
        pc=pc,
    )


def make_decode_error(*, output: bytes, encoding: str, exc: UnicodeDecodeError) -> OutputDecodeError:
    return OutputDecodeError(
        message=(
            f"OutputDecodeError: program output is not valid {encoding} "
            f"(byte {exc.start}: {exc.reason})"
        ),
        output=output,
    )
