"""
Command line driver: unpack a binary archive into text or pack it back.

    $ bintext --unpack Person.bin.lz        # writes Person.bin.lz.txt
    $ bintext --pack Person.bin.lz.txt      # writes Person.bin.lz
"""
import argparse
import codecs
import logging
import os
import sys
from pathlib import Path

from .archive import BinArchive, DEFAULT_ENCODING
from .compression import lz13
from .exceptions import BintextException
from .packer import pack
from .unpacker import unpack


logger = logging.getLogger(__name__)

COMPRESSED_EXTENSION = '.lz'


def read_archive(path: Path, encoding=DEFAULT_ENCODING) -> BinArchive:
    raw = path.read_bytes()

    if path.suffix == COMPRESSED_EXTENSION:
        logger.debug(f'decompressing \'{path}\'')
        raw = lz13.decompress(raw)

    return BinArchive.from_bytes(raw, encoding=encoding)


def write_archive(path: Path, archive: BinArchive):
    raw = archive.serialize()

    if path.suffix == COMPRESSED_EXTENSION:
        logger.debug(f'compressing \'{path}\'')
        raw = lz13.compress(raw)

    path.write_bytes(raw)


def unpack_output_path(input_path: Path) -> Path:
    return Path(input_path.name + '.txt')


def pack_output_path(input_path: Path) -> Path:
    return Path(input_path.name).with_suffix('')


def do_unpack(input_path: Path, output_path: Path, encoding):
    archive = read_archive(input_path, encoding=encoding)
    output_path.write_text(unpack(archive), encoding='utf-8')


def do_pack(input_path: Path, output_path: Path, encoding):
    archive = pack(input_path.read_text(encoding='utf-8'), encoding=encoding)
    write_archive(output_path, archive)


def encoding_name(value):
    try:
        codecs.lookup(value)
    except LookupError:
        raise argparse.ArgumentTypeError(f'unknown encoding \'{value}\'')

    return value


def build_parser():
    parser = argparse.ArgumentParser(
        prog='bintext',
        description='Convert binary archives to editable text and back')
    parser.add_argument('input')
    parser.add_argument('-o', '--output')
    parser.add_argument('--encoding', default=DEFAULT_ENCODING, type=encoding_name,
                        help='encoding of the strings in the archive')

    command = parser.add_mutually_exclusive_group(required=True)
    command.add_argument('-u', '--unpack', action='store_true', help='Unpack a bin file')
    command.add_argument('-p', '--pack', action='store_true', help='Pack a text file')

    return parser


def main(argv=None):
    logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)

    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f'Input is not a valid file: \'{input_path}\'')
        return 1

    if args.unpack:
        operation, action = 'unpack', do_unpack
        output_path = Path(args.output) if args.output else unpack_output_path(input_path)
    else:
        operation, action = 'pack', do_pack
        output_path = Path(args.output) if args.output else pack_output_path(input_path)

    try:
        action(input_path, output_path, args.encoding)
    except (BintextException, OSError, UnicodeDecodeError) as e:
        logger.error(f'Failed to {operation} \'{input_path}\': {e}')
        return 1

    logger.info(f'{operation}ed \'{input_path}\' into \'{output_path}\'')

    return 0


if __name__ == '__main__':
    sys.exit(main())
