"""
# bintext: binary archives for humans.

A binary archive is a flat blob of words of four bytes where each word can be
raw data, a pointer to another word or a reference to a string; words can
also carry any number of labels.

Two main operations are defined

 1. unpack(): take an archive and produce a plain text representation of it,
    one line for each word plus lines for labels and pointer destinations.
    Pointed words get a numeric identifier, assigned in the order the
    pointers are found, so that pointers sharing a destination share the
    identifier too.

 2. pack(): parse the text representation and build the archive back. Since
    a pointer can reference a destination defined later in the text, pointers
    are written as placeholders and patched once every line is written.

Unpacking an archive packed from text gives back the very same text.
"""
from .archive import BinArchive, BinArchiveWriter
from .packer import pack
from .unpacker import unpack, PointerIds
