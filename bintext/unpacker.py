"""
Conversion of an archive into its text representation.

The pointers are scanned once to give an identifier to every pointed address,
then one or more lines are emitted for each word of the archive.
"""
import logging
from typing import Dict, Optional

from . import lines
from .archive import BinArchive, WORD_SIZE


logger = logging.getLogger(__name__)


class PointerIds(object):
    '''Map from a pointed address to its identifier.

    Identifiers are assigned sequentially (starting from zero) the first
    time an address is seen, so pointers sharing a target share the identifier.'''

    def __init__(self):
        self._ids: Dict[int, int] = {}

    def __len__(self):
        return len(self._ids)

    def __contains__(self, address):
        return address in self._ids

    def get(self, address) -> Optional[int]:
        return self._ids.get(address)

    def assign(self, address) -> int:
        if address not in self._ids:
            self._ids[address] = len(self._ids)

        return self._ids[address]


def unpack(archive: BinArchive) -> str:
    ids = PointerIds()
    sources: Dict[int, int] = {}

    for address in range(0, archive.size, WORD_SIZE):
        target = archive.read_pointer(address)
        if target is not None:
            sources[address] = ids.assign(target)

    logger.debug('found %d pointers to %d destinations' % (len(sources), len(ids)))

    result = []
    for address in range(0, archive.size, WORD_SIZE):
        if address in ids:
            result.append(lines.dest_line(ids.get(address)))

        for label in archive.read_labels(address) or []:
            result.append(lines.label_line(label))

        if address in sources:
            result.append(lines.src_line(sources[address]))
        elif (text := archive.read_string(address)) is not None:
            if not text:
                logger.warning('empty string at 0x%x can\'t be packed back, it will be dropped' % address)
            result.append(text)
        else:
            result.append(lines.hex_line(archive.read_bytes(address, WORD_SIZE)))

    # pointers can target the end of the data
    if archive.size in ids:
        result.append(lines.dest_line(ids.get(archive.size)))

    return '\n'.join(result)
