import pytest

from bintext.archive import BinArchive


@pytest.fixture
def sample_archive():
    """Archive with a bit of everything: raw data, shared pointers, a string and labels."""
    archive = BinArchive()
    archive.allocate_at_end(0x18)

    archive.write_bytes(0x00, b'\xde\xad\xbe\xef')
    archive.write_pointer(0x04, 0x10)
    archive.write_string(0x08, 'hello')
    archive.write_pointer(0x0c, 0x10)
    archive.write_label(0x10, 'Table')
    archive.write_label(0x10, 'Alias')
    archive.write_u32(0x10, 0x2a)
    archive.write_pointer(0x14, 0x08)

    return archive


@pytest.fixture
def sample_text():
    return '\n'.join([
        '0xDEADBEEF',
        'SRC: 0',
        'DEST: 1',
        'hello',
        'SRC: 0',
        'DEST: 0',
        'LABEL: Table',
        'LABEL: Alias',
        '0x2A000000',
        'SRC: 1',
    ])
