import io
import logging
import struct

from .exceptions import ArchiveException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/file object to
    uniform its properties: mainly we need to read and write
    little endian words and to jump back and forth.'''
    def __init__(self, obj=b''):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)
        if init_method is None:
            raise ValueError('\'%s\' is the wrong kind of object to stream' % obj.__class__.__name__)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __len__(self):
        return len(self.obj.getvalue())

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        self.obj.seek(offset)

        return self

    def read_exactly(self, size):
        offset = self.obj.tell()
        data = self.obj.read(size)

        if len(data) != size:
            raise ArchiveException(f'expected {size} bytes at offset 0x{offset:x}, found {len(data)}')

        return data

    def read_u32(self):
        return struct.unpack('<I', self.read_exactly(4))[0]

    def read_cstring(self):
        '''Read bytes up to (and consuming) the null terminator'''
        offset = self.obj.tell()
        data = []
        while (b := self.obj.read(1)) != b'\x00':
            if not b:
                raise ArchiveException(f'unterminated string at offset 0x{offset:x}')
            data.append(b)

        return b''.join(data)

    def write(self, data):
        return self.obj.write(data)

    def write_u32(self, value):
        return self.obj.write(struct.pack('<I', value))

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)
