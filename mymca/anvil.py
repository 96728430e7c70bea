import warnings
from collections import namedtuple

from mymca.cursor import Cursor
from mymca.error import *

""" Region container layout: location table, timestamps and sectors
"""

# ====================================================================
# Constants
# ====================================================================
PAGE_SIZE = 4096
SLOT_COUNT = 1024
REGION_WIDTH = 32
HEADER_PAGES = 2

# ====================================================================
# Errors
# ====================================================================
class MalformedLocationTableError(MyMCAError):
    def __init__(self, size):
        super().__init__("The location table needs {expected} bytes, got only {size}",
                         expected=PAGE_SIZE, size=size)

# ====================================================================
# Chunk slots
# ====================================================================
class ChunkSlot(namedtuple('ChunkSlot', 'index x z addr size timestamp')):
    """ One entry of the location table.

        `addr` and `size` are expressed in pages (sectors) of PAGE_SIZE bytes.
        `x` and `z` are the chunk coordinates relative to the region.
    """
    __slots__ = ()

    @property
    def empty(self):
        return self.addr == 0 or self.size == 0

    @property
    def key(self):
        return chunk_key(self.x, self.z)

    @property
    def offset(self):
        return self.addr*PAGE_SIZE

    @property
    def length(self):
        return self.size*PAGE_SIZE

def chunk_key(x, z):
    return "{},{}".format(x, z)

def slot_index(x, z):
    if not (0 <= x < REGION_WIDTH and 0 <= z < REGION_WIDTH):
        raise IndexError("chunk ({},{}) is outside the region".format(x, z))

    return z*REGION_WIDTH+x

def bytes_to_chunk_addr(base, offset):
    """ Decode the 3 bytes page address and 1 byte page count
        found at base[offset]
    """
    entry = int.from_bytes(bytes(base[offset:offset+4]), 'big')
    return entry >> 8, entry & 0xFF

def parse_location_table(data):
    """ Return the SLOT_COUNT chunk slots of a region, in table order.

        Empty slots are kept. Only the location table is mandatory:
        timestamps missing at the end of data are read as 0.
    """
    if len(data) < PAGE_SIZE:
        raise MalformedLocationTableError(len(data))

    locations = Cursor(data)
    timestamps = Cursor(data, PAGE_SIZE)
    slots = []
    for idx in range(SLOT_COUNT):
        addr, size = bytes_to_chunk_addr(locations.read_view(4), 0)
        timestamp = timestamps.read_uint32() if timestamps.remaining() >= 4 else 0

        z, x = divmod(idx, REGION_WIDTH)
        slot = ChunkSlot(idx, x, z, addr, size, timestamp)
        if not slot.empty and addr < HEADER_PAGES:
            warnings.warn(MyMCAWarning("Chunk ({x},{z}) data located in the region header (page {addr})",
                                       x=x, z=z, addr=addr))

        slots.append(slot)

    return slots

def bitmap(slots):
    """ Return the logical page usage of a region.

        The result has one item per page, each item being the tuple
        of the (x, z) chunks using that page.
    """
    pages = []
    for slot in slots:
        if slot.empty:
            continue

        end = slot.addr + slot.size
        if len(pages) < end:
            pages.extend(() for _ in range(end-len(pages)))

        overlap = False
        for page in range(slot.addr, end):
            overlap = overlap or bool(pages[page])
            pages[page] += ((slot.x, slot.z),)

        if overlap:
            warnings.warn(MyMCAWarning("Chunk ({x},{z}) overlaps another chunk", x=slot.x, z=slot.z))

    return tuple(pages)

# ====================================================================
# Anvil
# ====================================================================
class Anvil:
    """ Read-only access to the raw content of a region container
    """
    def __init__(self, data):
        self._data = memoryview(data).cast('B')
        self._slots = parse_location_table(self._data)

    def __len__(self):
        return len(self._data)

    #------------------------------------
    # Slots
    #------------------------------------
    def slots(self):
        """ Iterator over all the slots, empty or not, in table order
        """
        return iter(self._slots)

    def chunks(self):
        """ Iterator over the allocated slots
        """
        return (slot for slot in self._slots if not slot.empty)

    def chunk_info(self, x, z):
        return self._slots[slot_index(x, z)]

    def bitmap(self):
        return bitmap(self._slots)

    #------------------------------------
    # Raw data
    #------------------------------------
    def chunk_data(self, slot):
        """ Return the content of the pages allocated to a slot.

            Pages missing at the end of the file are not padded: the
            returned view is shorter than the slot length in that case.
        """
        if slot.empty:
            return self._data[0:0]

        cur = Cursor(self._data, slot.offset)
        count = min(slot.length, cur.remaining())
        if count < slot.length:
            warnings.warn(MyMCAWarning("Chunk ({x},{z}) is truncated: {count} of {length} bytes available",
                                       x=slot.x, z=slot.z, count=count, length=slot.length))

        return cur.read_view(count)

    def get_chunk_data(self, x, z):
        return self.chunk_data(self.chunk_info(x, z))
