import gzip
import zlib

from mymca.cursor import Cursor
from mymca.error import *

""" Chunk payload framing and decompression
"""

# ====================================================================
# Constants
# ====================================================================
GZIP = 1
ZLIB = 2
NONE = 3

SCHEMES = {
    GZIP: "gzip",
    ZLIB: "zlib",
    NONE: "uncompressed",
}

# Payloads stored outside the region file have this bit set
EXTERNAL = 0x80

HEADER_SIZE = 5

# ====================================================================
# Errors
# ====================================================================
class PayloadError(MyMCAError):
    pass

class UnsupportedSchemeError(PayloadError):
    def __init__(self, scheme):
        if scheme & EXTERNAL:
            super().__init__("Chunk data stored in an external file (scheme {scheme}) are not supported", scheme=scheme)
        else:
            super().__init__("Unsupported compression scheme {scheme}", scheme=scheme)
        self.scheme = scheme

class CorruptPayloadError(PayloadError):
    def __init__(self, scheme, reason):
        super().__init__("Corrupted {name} payload: {reason}", name=SCHEMES.get(scheme, scheme), reason=reason)

class LengthMismatchError(PayloadError):
    def __init__(self, declared, available):
        super().__init__("Declared payload length {declared} does not match the {available} byte(s) available",
                         declared=declared, available=available)

# ====================================================================
# Decompression
# ====================================================================
def _zlib(body):
    decompressor = zlib.decompressobj()
    data = decompressor.decompress(body)
    if not decompressor.eof:
        raise zlib.error("truncated stream")
    if decompressor.unused_data:
        raise zlib.error("{} byte(s) after the end of stream".format(len(decompressor.unused_data)))

    return data

def _gzip(body):
    return gzip.decompress(body)

def _none(body):
    return body

DECOMPRESSORS = {
    GZIP: _gzip,
    ZLIB: _zlib,
    NONE: _none,
}

def decompress(scheme, body):
    """ Decompress a chunk body according to its compression scheme
    """
    try:
        decompressor = DECOMPRESSORS[scheme]
    except KeyError:
        raise UnsupportedSchemeError(scheme) from None

    try:
        return decompressor(body)
    except (zlib.error, OSError, EOFError) as e:
        raise CorruptPayloadError(scheme, e) from e

# ====================================================================
# Framing
# ====================================================================
def split_payload(data):
    """ Split a chunk payload into its (scheme, body) parts

        `data` is the content of the sectors allocated to the chunk.
        The declared length counts the scheme byte and the body, so it
        must be at least 1 and fit in `data`. Padding after the declared
        length is ignored.
    """
    cur = Cursor(data)
    length = cur.read_uint32()
    scheme = cur.read_uint8()

    available = cur.remaining()
    if length < 1 or length-1 > available:
        raise LengthMismatchError(length, available+1)

    return scheme, cur.read_bytes(length-1)

def decode_payload(data):
    """ Return the decompressed tag stream of a chunk payload
    """
    scheme, body = split_payload(data)
    return decompress(scheme, body)
