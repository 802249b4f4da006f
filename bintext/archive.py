"""
# Binary archive container

The archive is a flat blob of data addressed in words of four bytes, and
some side tables describing what the words mean

  .----------------------------------.
  | header (0x20 bytes)              |
  | data                             |
  | pointer table                    |
  | label table                      |
  | text                             |
  '----------------------------------'

The header contains (as little endian u32) the size of the file, the size of
the data, the number of entries of the pointer table and the number of entries
of the label table, followed by 16 bytes of padding.

Each entry of the pointer table is the address (relative to the start of the
data) of a word containing a pointer; the pointed value is relative to the start
of the data too, if it falls inside the text region then the word is actually a
reference to a null-terminated string.

Each entry of the label table is a couple (address, name offset) where the name
offset is relative to the start of the text region.

In memory the archive is represented by the raw data plus three dictionaries
(pointers, strings and labels) keyed by address, so that a word is a pointer,
a string or plain data.
"""
import logging
import struct
from typing import Dict, List, Optional

from .exceptions import ArchiveException
from .streams import Stream


logger = logging.getLogger(__name__)

WORD_SIZE = 4
HEADER_FORMAT = '<IIII16x'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
DEFAULT_ENCODING = 'shift_jis'


class BinArchive(object):

    def __init__(self, encoding=DEFAULT_ENCODING):
        self.encoding = encoding
        self.data = bytearray()
        self.pointers: Dict[int, int] = {}
        self.text: Dict[int, str] = {}
        self.labels: Dict[int, List[str]] = {}

    def __repr__(self):
        return '<%s(size=0x%x, pointers=%d, strings=%d, labels=%d)>' % (
            self.__class__.__name__,
            self.size,
            len(self.pointers),
            len(self.text),
            sum(len(_) for _ in self.labels.values()),
        )

    def __len__(self):
        return len(self.data)

    @property
    def size(self) -> int:
        return len(self.data)

    def _check_address(self, address):
        if not isinstance(address, int) or address % WORD_SIZE != 0:
            raise ArchiveException(f'address {address!r} is not word aligned')
        if address < 0 or address + WORD_SIZE > self.size:
            raise ArchiveException(f'address 0x{address:x} is out of bounds (size 0x{self.size:x})')

    def _check_range(self, address, length):
        if address < 0 or length < 0 or address + length > self.size:
            raise ArchiveException(
                f'range 0x{address:x}-0x{address + length:x} is out of bounds (size 0x{self.size:x})')

    def allocate_at_end(self, length):
        if length < 0 or length % WORD_SIZE != 0:
            raise ArchiveException(f'cannot allocate {length} bytes, it must be a multiple of {WORD_SIZE}')

        self.data.extend(b'\x00' * length)

    def read_bytes(self, address, length) -> bytes:
        self._check_range(address, length)
        return bytes(self.data[address:address + length])

    def write_bytes(self, address, data):
        self._check_range(address, len(data))
        self.data[address:address + len(data)] = data

    def read_u32(self, address) -> int:
        self._check_address(address)
        return struct.unpack_from('<I', self.data, address)[0]

    def write_u32(self, address, value):
        self._check_address(address)
        struct.pack_into('<I', self.data, address, value)

    def read_pointer(self, address) -> Optional[int]:
        self._check_address(address)
        return self.pointers.get(address)

    def write_pointer(self, address, target: Optional[int]):
        '''Make the word at address point to target, None clears the pointer.'''
        self._check_address(address)

        if target is None:
            self.pointers.pop(address, None)
            return

        if target < 0 or target > self.size:
            raise ArchiveException(f'pointer target 0x{target:x} is out of bounds (size 0x{self.size:x})')

        self.text.pop(address, None)
        self.pointers[address] = target
        struct.pack_into('<I', self.data, address, target)

    def read_string(self, address) -> Optional[str]:
        self._check_address(address)
        return self.text.get(address)

    def write_string(self, address, value: Optional[str]):
        self._check_address(address)

        if value is None:
            self.text.pop(address, None)
            return

        self.pointers.pop(address, None)
        self.text[address] = value

    def read_labels(self, address) -> Optional[List[str]]:
        self._check_address(address)
        labels = self.labels.get(address)

        return list(labels) if labels else None

    def write_label(self, address, name: str):
        self._check_address(address)
        self.labels.setdefault(address, []).append(name)

    def _decode(self, raw: bytes, offset: int) -> str:
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ArchiveException(f'cannot decode string at offset 0x{offset:x}: {e}') from e

    def _encode(self, value: str) -> bytes:
        try:
            return value.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise ArchiveException(f'cannot encode string {value!r}: {e}') from e

    def _read_text(self, stream: Stream, offset: int) -> str:
        stream.save()
        try:
            stream.seek(offset)
            return self._decode(stream.read_cstring(), offset)
        finally:
            stream.restore()

    @classmethod
    def from_bytes(cls, raw: bytes, encoding=DEFAULT_ENCODING) -> 'BinArchive':
        stream = Stream(raw)

        if len(stream) < HEADER_SIZE:
            raise ArchiveException(f'archive too small ({len(stream)} bytes) to contain a header')

        file_size, data_size, pointer_count, label_count = struct.unpack(
            HEADER_FORMAT, stream.read_exactly(HEADER_SIZE))

        logger.debug('header: file_size=0x%x data_size=0x%x pointers=%d labels=%d' % (
            file_size, data_size, pointer_count, label_count))

        if file_size != len(stream):
            raise ArchiveException(f'file size in header (0x{file_size:x}) doesn\'t match the actual one (0x{len(stream):x})')

        if data_size % WORD_SIZE != 0:
            raise ArchiveException(f'data size 0x{data_size:x} is not a multiple of {WORD_SIZE}')

        # the text region starts right after the tables, relative to the data
        text_base = data_size + pointer_count * 4 + label_count * 8
        text_start = HEADER_SIZE + text_base

        if text_start > file_size:
            raise ArchiveException(f'tables end at 0x{text_start:x}, past the end of the file')

        archive = cls(encoding=encoding)
        archive.data = bytearray(stream.read_exactly(data_size))

        for _ in range(pointer_count):
            address = stream.read_u32()
            archive._check_address(address)
            target = archive.read_u32(address)

            if target >= text_base:
                archive.text[address] = archive._read_text(stream, HEADER_SIZE + target)
            else:
                archive.pointers[address] = target

        for _ in range(label_count):
            address = stream.read_u32()
            name_offset = stream.read_u32()
            archive.write_label(address, archive._read_text(stream, text_start + name_offset))

        logger.debug('loaded %r' % archive)

        return archive

    def serialize(self) -> bytes:
        pointer_addresses = sorted(set(self.pointers) | set(self.text))
        label_entries = [(address, name) for address in sorted(self.labels) for name in self.labels[address]]

        text_base = self.size + len(pointer_addresses) * 4 + len(label_entries) * 8

        text = bytearray()
        offsets: Dict[str, int] = {}

        def _intern(value):
            if value not in offsets:
                offsets[value] = len(text)
                text.extend(self._encode(value) + b'\x00')

            return offsets[value]

        data = bytearray(self.data)
        for address in sorted(self.text):
            struct.pack_into('<I', data, address, text_base + _intern(self.text[address]))

        for address, target in self.pointers.items():
            struct.pack_into('<I', data, address, target)

        # label names follow the strings
        label_offsets = [(address, _intern(name)) for address, name in label_entries]

        stream = Stream()

        stream.write(struct.pack(
            HEADER_FORMAT,
            HEADER_SIZE + text_base + len(text),
            self.size,
            len(pointer_addresses),
            len(label_entries),
        ))
        stream.write(data)

        for address in pointer_addresses:
            stream.write_u32(address)

        for address, name_offset in label_offsets:
            stream.write_u32(address)
            stream.write_u32(name_offset)

        stream.write(text)

        raw = stream.getvalue()
        logger.debug('serialized %r into 0x%x bytes' % (self, len(raw)))

        return raw


class BinArchiveWriter(object):
    '''Sequential writer: every write happens at the cursor and moves it forward.'''

    def __init__(self, archive: BinArchive, address=0):
        self.archive = archive
        self.address = address

    def tell(self) -> int:
        return self.address

    def seek(self, address):
        self.address = address

    def write_u32(self, value):
        self.archive.write_u32(self.address, value)
        self.address += WORD_SIZE

    def write_bytes(self, data: bytes):
        self.archive.write_bytes(self.address, data)
        self.address += len(data)

    def write_pointer(self, target: Optional[int]):
        self.archive.write_pointer(self.address, target)
        self.address += WORD_SIZE

    def write_string(self, value: Optional[str]):
        self.archive.write_string(self.address, value)
        self.address += WORD_SIZE

    def write_label(self, name: str):
        self.archive.write_label(self.address, name)
