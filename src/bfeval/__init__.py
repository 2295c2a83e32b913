from .api import EvaluateOptions, EvaluateResult, evaluate, evaluate_file, run
from .compiler import Compiler, compile_program
from .errors import (
    BFError,
    MalformedProgramError,
    OutputDecodeError,
    TapeFaultError,
    UnbalancedBracketError,
    UnimplementedInstructionError,
    UnknownInstructionError,
)
from .lexer import normalize, preprocess, rewrite_idioms
from .machine import Machine

__all__ = [
    'evaluate',
    'evaluate_file',
    'run',
    'EvaluateOptions',
    'EvaluateResult',
    'normalize',
    'rewrite_idioms',
    'preprocess',
    'Compiler',
    'compile_program',
    'Machine',
    'BFError',
    'MalformedProgramError',
    'UnknownInstructionError',
    'UnbalancedBracketError',
    'UnimplementedInstructionError',
    'TapeFaultError',
    'OutputDecodeError',
]
