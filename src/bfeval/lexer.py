from __future__ import annotations

from typing import Tuple

MOVE_RIGHT = '>'
MOVE_LEFT = '<'
INCREMENT = '+'
DECREMENT = '-'
OUTPUT = '.'
INPUT = ','
LOOP_START = '['
LOOP_END = ']'

# Shorthand tokens produced by rewrite_idioms(); never present in normalized text.
CLEAR = 'c'
SCAN_LEFT = 'l'
SCAN_RIGHT = 'r'

BF_OPS = frozenset('><+-.,[]')

# Applied in order, each one over the whole text.
IDIOMS: Tuple[Tuple[str, str], ...] = (
    ('[-]', CLEAR),
    ('[+]', CLEAR),
    ('[<]', SCAN_LEFT),
    ('[>]', SCAN_RIGHT),
)


def normalize(source: str) -> str:
    """Drop every character that is not one of the eight instruction symbols."""
    return ''.join(ch for ch in source if ch in BF_OPS)


def rewrite_idioms(code: str) -> str:
    """
    Replace the clear and scan loop idioms with their shorthand tokens.

    Matching is literal, so ``code`` must already be normalized: ``[ - ]``
    is not an idiom until the spaces are gone.
    """
    for idiom, token in IDIOMS:
        code = code.replace(idiom, token)
    return code


def preprocess(source: str) -> str:
    return rewrite_idioms(normalize(source))
