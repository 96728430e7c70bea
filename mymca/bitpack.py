from array import array

""" Bit fields manipulation
"""

# ====================================================================
# Constants
# ====================================================================
UINT_SIZE={}
for fmt in "BHILQ":
    UINT_SIZE.setdefault(array(fmt).itemsize, fmt)

INT_SIZE={}
for fmt in "bhilq":
    INT_SIZE.setdefault(array(fmt).itemsize, fmt)

UINT_8 = UINT_SIZE[1]
UINT_16 = UINT_SIZE[2]
UINT_32 = UINT_SIZE[4]
UINT_64 = UINT_SIZE[8]

INT_8 = INT_SIZE[1]
INT_16 = INT_SIZE[2]
INT_32 = INT_SIZE[4]
INT_64 = INT_SIZE[8]

UINT_FORMAT = 'X' + UINT_8*8 + UINT_16 *8 + UINT_32*16 + UINT_64*32

# ====================================================================
# Global functions
# ====================================================================
def _dest(nbits):
    try:
        fmt = UINT_FORMAT[nbits]
    except IndexError:
        raise OverflowError("Cannot unpack {} bits wide data".format(nbits))

    return array(fmt)

def unpack(nbits, size, data, count=None):
    """ split data in nbits chunks

        data is an iterator on fixed size ints. Items may span
        two consecutive source integers. Decoding stops after `count`
        items if given.
    """
    dest = _dest(nbits)
    if count is None:
        count = -1

    mask = (1<<nbits)-1
    umask = (1<<size)-1 # mask to avoid sign bit extension
    remaining = 0
    acc = 0
    for n in data:
        acc |= ((n&umask) << remaining)
        remaining += size

        while remaining >= nbits:
            if count == 0:
                return dest
            dest.append(acc & mask)
            remaining -= nbits
            acc >>= nbits
            count -= 1

    return dest

def unpack_padded(nbits, size, data, count=None):
    """ split data in nbits chunks

        Same as unpack() except items never span two source integers:
        the `size % nbits` high bits of each source integer are padding.
    """
    dest = _dest(nbits)
    if count is None:
        count = -1

    mask = (1<<nbits)-1
    umask = (1<<size)-1
    per_item = size // nbits
    for n in data:
        n &= umask
        for _ in range(per_item):
            if count == 0:
                return dest
            dest.append(n & mask)
            n >>= nbits
            count -= 1

    return dest

def packed_length(nbits, size, count, padded):
    """ Number of `size` bits integers required to store `count`
        items of `nbits` bits
    """
    if padded:
        per_item = size // nbits
        return (count + per_item - 1) // per_item

    return (count*nbits + size - 1) // size
