class BintextException(Exception):
    '''Base class to extend in order to throw exception in bintext.'''
    pass


class ArchiveException(BintextException):
    '''The container data is corrupt or the access is out of its bounds.'''
    pass


class CompressionException(BintextException):
    pass


class PackException(BintextException):
    '''Raised when a line of the text representation can't be encoded.

    It takes the 1-based number of the offending line and the token.
    '''
    reason = 'bad line'

    def __init__(self, lineno, token):
        self.lineno = lineno
        self.token = token
        super().__init__(f'{self.reason} at line {lineno}: {token!r}')


class HexDecodeException(PackException):
    reason = 'Bad hex string'


class HexLengthException(PackException):
    reason = 'Hex string has incorrect length'


class UnresolvedPointerException(BintextException):

    def __init__(self, pointer_id):
        self.pointer_id = pointer_id
        super().__init__(f'Unresolved pointer {pointer_id}')
