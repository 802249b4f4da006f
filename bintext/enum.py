from enum import Enum, auto


class LineKind(Enum):
    '''Kind of a line in the text representation of an archive'''
    EMPTY  = auto()
    DEST   = auto()
    SRC    = auto()
    LABEL  = auto()
    HEX    = auto()
    STRING = auto()

    @property
    def is_content(self):
        '''True for the lines that occupy a word in the archive'''
        return self in (LineKind.SRC, LineKind.HEX, LineKind.STRING)
