"""
Line grammar of the text representation.

Each line is one of

    DEST: <id>      the following word is the target of the pointers with this id
    SRC: <id>       the word is a pointer to the DEST with the same id
    LABEL: <name>   label attached to the following word
    0xDEADBEEF      raw word, bytes in storage order
    <text>          string

Empty lines are ignored.
"""
from typing import Tuple

from .enum import LineKind


DEST_PREFIX = 'DEST:'
SRC_PREFIX = 'SRC:'
LABEL_PREFIX = 'LABEL:'
HEX_PREFIX = '0x'


def dest_line(pointer_id) -> str:
    return f'{DEST_PREFIX} {pointer_id}'


def src_line(pointer_id) -> str:
    return f'{SRC_PREFIX} {pointer_id}'


def label_line(name: str) -> str:
    return f'{LABEL_PREFIX} {name}'


def hex_line(data: bytes) -> str:
    return HEX_PREFIX + ''.join('%02X' % _ for _ in data)


def parse_line(line: str) -> Tuple[LineKind, str]:
    '''Classify an already stripped line and return its kind with the payload.

    The payload of DEST, SRC and LABEL lines is stripped, the one of HEX lines
    is what follows the prefix, STRING lines are returned as they are.'''
    if not line:
        return LineKind.EMPTY, ''

    for prefix, kind in (
        (DEST_PREFIX, LineKind.DEST),
        (SRC_PREFIX, LineKind.SRC),
        (LABEL_PREFIX, LineKind.LABEL),
    ):
        if line.startswith(prefix):
            return kind, line[len(prefix):].strip()

    if line.startswith(HEX_PREFIX):
        return LineKind.HEX, line[len(HEX_PREFIX):]

    return LineKind.STRING, line
