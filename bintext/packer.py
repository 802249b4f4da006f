"""
Conversion of the text representation back into an archive.

Packing happens in two phases: first every line is written sequentially,
pointers included but with a zero placeholder since the destination can be
defined after the source; then each recorded source is patched with the
address of its destination.
"""
import binascii
import logging
from typing import Dict, List, Tuple

from .archive import BinArchive, BinArchiveWriter, WORD_SIZE, DEFAULT_ENCODING
from .enum import LineKind
from .exceptions import (
    HexDecodeException,
    HexLengthException,
    UnresolvedPointerException,
)
from .lines import parse_line


logger = logging.getLogger(__name__)


def decode_hex(token: str) -> bytes:
    if len(token) % 2 != 0:
        raise ValueError('Hex string has odd length')

    return binascii.unhexlify(token)


def pack(text: str, encoding=DEFAULT_ENCODING) -> BinArchive:
    parsed = [parse_line(_.strip()) for _ in text.split('\n')]
    size = sum(1 for kind, _ in parsed if kind.is_content) * WORD_SIZE

    archive = BinArchive(encoding=encoding)
    archive.allocate_at_end(size)
    writer = BinArchiveWriter(archive)

    destinations: Dict[str, int] = {}
    sources: List[Tuple[int, str]] = []

    for lineno, (kind, payload) in enumerate(parsed, start=1):
        if kind == LineKind.DEST:
            destinations[payload] = writer.tell()
        elif kind == LineKind.SRC:
            sources.append((writer.tell(), payload))
            writer.write_u32(0)
        elif kind == LineKind.LABEL:
            writer.write_label(payload)
        elif kind == LineKind.HEX:
            try:
                data = decode_hex(payload)
            except ValueError as e:
                raise HexDecodeException(lineno, payload) from e

            if len(data) != WORD_SIZE:
                raise HexLengthException(lineno, payload)

            writer.write_bytes(data)
        elif kind == LineKind.STRING:
            writer.write_string(payload)

    for address, pointer_id in sources:
        if pointer_id not in destinations:
            raise UnresolvedPointerException(pointer_id)

        logger.debug('%X, %X, %s' % (address, destinations[pointer_id], pointer_id))
        archive.write_pointer(address, destinations[pointer_id])

    return archive
