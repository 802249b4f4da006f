import struct

import pytest

from bintext.archive import BinArchive, BinArchiveWriter, HEADER_SIZE
from bintext.exceptions import ArchiveException
from bintext.streams import Stream


def test_stream():
    stream = Stream(b'\x01\x00\x00\x00ab\x00cd')

    assert len(stream) == 9
    assert stream.read_u32() == 1

    stream.save()
    assert stream.read_cstring() == b'ab'
    stream.restore()

    assert stream.tell() == 4
    assert stream.seek(7).read_exactly(2) == b'cd'

    with pytest.raises(ArchiveException):
        stream.seek(7).read_cstring()

    with pytest.raises(ArchiveException):
        stream.seek(8).read_exactly(4)


def test_archive_primitives():
    archive = BinArchive()
    archive.allocate_at_end(0x10)

    assert archive.size == 0x10
    assert len(archive) == 0x10
    assert archive.read_bytes(0, 0x10) == b'\x00' * 0x10

    archive.write_pointer(0, 8)
    assert archive.read_pointer(0) == 8
    assert archive.read_string(0) is None

    # string and pointer exclude each other
    archive.write_string(0, 'text')
    assert archive.read_pointer(0) is None
    assert archive.read_string(0) == 'text'

    archive.write_pointer(0, 4)
    assert archive.read_string(0) is None

    archive.write_pointer(0, None)
    assert archive.read_pointer(0) is None

    archive.write_label(4, 'first')
    archive.write_label(4, 'second')
    assert archive.read_labels(4) == ['first', 'second']
    assert archive.read_labels(8) is None


@pytest.mark.parametrize('address', [-4, 2, 0x10, 0x14])
def test_archive_bad_address(address):
    archive = BinArchive()
    archive.allocate_at_end(0x10)

    with pytest.raises(ArchiveException):
        archive.read_pointer(address)


def test_archive_bad_allocation():
    with pytest.raises(ArchiveException):
        BinArchive().allocate_at_end(3)


def test_writer():
    archive = BinArchive()
    archive.allocate_at_end(0x10)
    writer = BinArchiveWriter(archive)

    writer.write_label('start')
    writer.write_u32(0xcafe)
    writer.write_bytes(b'\x01\x02\x03\x04')
    writer.write_string('hello')
    assert writer.tell() == 0x0c

    writer.write_pointer(0)
    assert writer.tell() == 0x10

    assert archive.read_labels(0) == ['start']
    assert archive.read_bytes(0, 8) == b'\xfe\xca\x00\x00\x01\x02\x03\x04'
    assert archive.read_string(8) == 'hello'
    assert archive.read_pointer(0x0c) == 0

    with pytest.raises(ArchiveException):
        writer.write_u32(0)


def test_serialize_layout():
    """Check the on-disk layout: header, data, pointers, labels and text."""
    archive = BinArchive()
    archive.allocate_at_end(8)
    archive.write_pointer(0, 4)
    archive.write_string(4, 'ab')
    archive.write_label(4, 'L')

    raw = archive.serialize()

    assert raw == (
        struct.pack('<IIII', 0x3d, 8, 2, 1) + b'\x00' * 0x10 +
        b'\x04\x00\x00\x00' + b'\x18\x00\x00\x00' +  # data
        b'\x00\x00\x00\x00' + b'\x04\x00\x00\x00' +  # pointers
        b'\x04\x00\x00\x00' + b'\x03\x00\x00\x00' +  # labels
        b'ab\x00L\x00'
    )

    loaded = BinArchive.from_bytes(raw)

    assert loaded.size == 8
    assert loaded.read_pointer(0) == 4
    assert loaded.read_string(4) == 'ab'
    assert loaded.read_labels(4) == ['L']
    assert loaded.serialize() == raw


def test_serialize_deduplicates_strings():
    archive = BinArchive()
    archive.allocate_at_end(8)
    archive.write_string(0, 'same')
    archive.write_string(4, 'same')
    archive.write_label(0, 'same')

    raw = archive.serialize()

    assert raw.count(b'same') == 1
    assert BinArchive.from_bytes(raw).read_string(4) == 'same'


def test_serialize_empty():
    raw = BinArchive().serialize()

    assert raw == struct.pack('<IIII', HEADER_SIZE, 0, 0, 0) + b'\x00' * 0x10
    assert BinArchive.from_bytes(raw).size == 0


def test_encoding():
    archive = BinArchive()
    archive.allocate_at_end(4)
    archive.write_string(0, 'ステータス')

    raw = archive.serialize()

    assert 'ステータス'.encode('shift_jis') in raw
    assert BinArchive.from_bytes(raw).read_string(0) == 'ステータス'

    utf8 = BinArchive(encoding='utf-8')
    utf8.allocate_at_end(4)
    utf8.write_string(0, 'ステータス')

    assert BinArchive.from_bytes(utf8.serialize(), encoding='utf-8').read_string(0) == 'ステータス'


def test_encoding_error():
    archive = BinArchive(encoding='ascii')
    archive.allocate_at_end(4)
    archive.write_string(0, 'ステータス')

    with pytest.raises(ArchiveException):
        archive.serialize()


def test_from_bytes_truncated():
    with pytest.raises(ArchiveException):
        BinArchive.from_bytes(b'\x00' * 4)


def test_from_bytes_wrong_file_size(sample_archive):
    raw = sample_archive.serialize()

    with pytest.raises(ArchiveException):
        BinArchive.from_bytes(raw + b'\x00')


def test_from_bytes_tables_out_of_bounds():
    raw = struct.pack('<IIII', 0x24, 4, 10, 0) + b'\x00' * 0x14

    with pytest.raises(ArchiveException):
        BinArchive.from_bytes(raw)


def test_from_bytes_bad_pointer_address():
    raw = struct.pack('<IIII', 0x28, 4, 1, 0) + b'\x00' * 0x10 + b'\x00' * 4 + b'\x06\x00\x00\x00'

    with pytest.raises(ArchiveException):
        BinArchive.from_bytes(raw)
