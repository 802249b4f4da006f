'''
# LZ13 compression

An LZ13 file is a four bytes header followed by a standard LZ11 stream

  .----------------------------------------.
  | 0x13 | decompressed size (u24, little) |
  | 0x11 | decompressed size (u24, little) |
  | [0x00000000 | size (u32)]  when u24 is zero
  | flags | token | token | ... | token    |
  | flags | token | ...                    |
  '----------------------------------------'

Every flags byte describes the eight following tokens, most significant bit
first: a zero bit is a literal byte, a one bit is a back reference into the
already decompressed data. The high nibble of the first byte of a back
reference selects its encoding

  nibble >= 2   length = nibble + 1                    (2 bytes)
  nibble == 0   length = 8 bits + 0x11                 (3 bytes)
  nibble == 1   length = 16 bits + 0x111               (4 bytes)

and the last 12 bits are always the displacement minus one.
'''
import logging
from collections import defaultdict
from typing import Tuple

from bitstring import BitArray

from ..exceptions import CompressionException


logger = logging.getLogger(__name__)

LZ11_MAGIC = 0x11
LZ13_MAGIC = 0x13

WINDOW_SIZE = 0x1000
MIN_MATCH_LEN = 3
MAX_MATCH_LEN = 0x10110
# how many previous occurrences of a prefix we are going to try
MAX_CANDIDATES = 0x80


def lz11_decompress(data: bytes) -> bytes:
    pos = 0

    def _take(n):
        nonlocal pos
        if pos + n > len(data):
            raise CompressionException(f'truncated LZ11 stream at offset 0x{pos:x}')
        chunk = data[pos:pos + n]
        pos += n
        return chunk

    magic = _take(1)[0]
    if magic != LZ11_MAGIC:
        raise CompressionException(f'wrong LZ11 magic 0x{magic:02x}')

    size = int.from_bytes(_take(3), 'little')
    if size == 0:
        size = int.from_bytes(_take(4), 'little')

    out = bytearray()
    while len(out) < size:
        for is_reference in BitArray(_take(1)):
            if len(out) >= size:
                break

            if not is_reference:
                out += _take(1)
                continue

            b1 = _take(1)[0]
            indicator = b1 >> 4

            if indicator == 0:
                b2, b3 = _take(2)
                length = (((b1 & 0x0f) << 4) | (b2 >> 4)) + 0x11
                disp = (((b2 & 0x0f) << 8) | b3) + 1
            elif indicator == 1:
                b2, b3, b4 = _take(3)
                length = (((b1 & 0x0f) << 12) | (b2 << 4) | (b3 >> 4)) + 0x111
                disp = (((b3 & 0x0f) << 8) | b4) + 1
            else:
                b2, = _take(1)
                length = indicator + 1
                disp = (((b1 & 0x0f) << 8) | b2) + 1

            if disp > len(out):
                raise CompressionException(f'back reference 0x{disp:x} before the start of the data')

            # byte by byte since source and destination can overlap
            start = len(out) - disp
            for idx in range(min(length, size - len(out))):
                out.append(out[start + idx])

    return bytes(out)


def _encode_reference(length: int, disp: int) -> bytes:
    disp -= 1
    if length <= 0x10:
        return bytes([((length - 1) << 4) | (disp >> 8), disp & 0xff])

    if length <= 0x110:
        x = length - 0x11
        return bytes([x >> 4, ((x & 0x0f) << 4) | (disp >> 8), disp & 0xff])

    x = length - 0x111
    return bytes([0x10 | (x >> 12), (x >> 4) & 0xff, ((x & 0x0f) << 4) | (disp >> 8), disp & 0xff])


def _find_match(data: bytes, pos: int, candidates) -> Tuple[int, int]:
    '''Returns the (length, displacement) of the longest match, (0, 0) if nothing is found'''
    best_length, best_disp = 0, 0
    max_length = min(MAX_MATCH_LEN, len(data) - pos)

    for candidate in reversed(candidates[-MAX_CANDIDATES:]):
        disp = pos - candidate
        if disp > WINDOW_SIZE:
            break

        length = MIN_MATCH_LEN
        while length < max_length and data[candidate + length] == data[pos + length]:
            length += 1

        if length > best_length:
            best_length, best_disp = length, disp
            if length == max_length:
                break

    return best_length, best_disp


def lz11_compress(data: bytes) -> bytes:
    size = len(data)

    out = bytearray([LZ11_MAGIC])
    if 0 < size <= 0xffffff:
        out += size.to_bytes(3, 'little')
    else:
        out += bytes(3) + size.to_bytes(4, 'little')

    index = defaultdict(list)
    pos = 0
    flags, tokens = [], bytearray()

    def _flush():
        out.extend(BitArray(flags + [False] * (8 - len(flags))).bytes)
        out.extend(tokens)
        flags.clear()
        tokens.clear()

    while pos < size:
        key = data[pos:pos + MIN_MATCH_LEN]
        length, disp = _find_match(data, pos, index[key]) if len(key) == MIN_MATCH_LEN else (0, 0)

        if length >= MIN_MATCH_LEN:
            flags.append(True)
            tokens += _encode_reference(length, disp)
        else:
            length = 1
            flags.append(False)
            tokens.append(data[pos])

        for idx in range(pos, min(pos + length, size - MIN_MATCH_LEN + 1)):
            index[data[idx:idx + MIN_MATCH_LEN]].append(idx)
        pos += length

        if len(flags) == 8:
            _flush()

    if flags:
        _flush()

    return bytes(out)


def decompress(data: bytes) -> bytes:
    if len(data) < 4 or data[0] != LZ13_MAGIC:
        raise CompressionException('missing LZ13 header')

    size = int.from_bytes(data[1:4], 'little')
    result = lz11_decompress(data[4:])

    if len(result) != size:
        raise CompressionException(f'LZ13 header declares 0x{size:x} bytes, found 0x{len(result):x}')

    logger.debug('decompressed 0x%x bytes into 0x%x' % (len(data), len(result)))

    return result


def compress(data: bytes) -> bytes:
    if len(data) > 0xffffff:
        raise CompressionException(f'0x{len(data):x} bytes are too many for an LZ13 header')

    result = bytes([LZ13_MAGIC]) + len(data).to_bytes(3, 'little') + lz11_compress(data)

    logger.debug('compressed 0x%x bytes into 0x%x' % (len(data), len(result)))

    return result
