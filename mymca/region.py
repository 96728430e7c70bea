import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from mymca.anvil import Anvil, chunk_key
from mymca.chunk import assemble, DEFAULT_Y_RANGE
from mymca.codec import decode_payload
from mymca.error import *
import mymca.nbt as nbt

log = logging.getLogger(__name__)

#------------------------------------
# Results
#------------------------------------
class Diagnostic(namedtuple('Diagnostic', 'x z error')):
    """ A chunk that couldn't be decoded, and why
    """
    __slots__ = ()

    @property
    def key(self):
        return chunk_key(self.x, self.z)

    def __str__(self):
        return "{}: {}: {}".format(self.key, type(self.error).__name__, self.error)

class RegionMap(dict):
    """ Decoded chunks by "x,z" key.

        `diagnostics` lists the chunks that were present in the region
        but couldn't be decoded, in table order.
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.diagnostics = []

    def chunk(self, x, z):
        return self[chunk_key(x, z)]

#------------------------------------
# Region
#------------------------------------
class Region(Anvil):
    """ A Region file
    """
    def __init__(self, data, *, max_depth=nbt.MAX_DEPTH, skip=(), y_range=DEFAULT_Y_RANGE):
        super().__init__(data)
        self._max_depth = max_depth
        self._skip = frozenset(skip)
        self._y_range = y_range

    @classmethod
    def fromFile(cls, path, **kwargs):
        with open(path, 'rb') as f:
            return cls(f.read(), **kwargs)

    def parse_slot(self, slot):
        """ Return the tag tree stored in a slot
        """
        stream = decode_payload(self.chunk_data(slot))
        root, name, offset = nbt.parse(stream, max_depth=self._max_depth)

        return root

    def decode_slot(self, slot):
        """ Decode the chunk stored in a slot.

            Errors are not caught: this is the building block for callers
            driving the decoding chunk by chunk.
        """
        root = self.parse_slot(slot)
        return assemble(root, slot.x, slot.z, skip=self._skip, y_range=self._y_range)

    def decode_chunk(self, x, z):
        return self.decode_slot(self.chunk_info(x, z))

    def _try_decode_slot(self, slot):
        try:
            return slot, self.decode_slot(slot), None
        except MyMCAError as e:
            log.debug("chunk %s not decoded: %s", slot.key, e)
            return slot, None, e

    def decode(self, workers=None):
        """ Decode all the allocated chunks of the region.

            A chunk that can't be decoded is left out of the result and
            recorded in its diagnostics. With `workers` > 1 the chunks are
            decoded concurrently; the result is the same.
        """
        slots = list(self.chunks())
        if workers is not None and workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._try_decode_slot, slots))
        else:
            results = [self._try_decode_slot(slot) for slot in slots]

        region_map = RegionMap()
        for slot, chunk, error in results:
            if error is None:
                region_map[slot.key] = chunk
            else:
                region_map.diagnostics.append(Diagnostic(slot.x, slot.z, error))

        return region_map

#------------------------------------
# Module functions
#------------------------------------
def decode(data, *, max_depth=nbt.MAX_DEPTH, skip=(), y_range=DEFAULT_Y_RANGE, workers=None):
    """ Decode a region container held in memory.

        Raise MalformedLocationTableError if data is too short to hold
        the location table. Any other error only discards the chunk
        it was found in (see RegionMap.diagnostics).
    """
    return Region(data, max_depth=max_depth, skip=skip, y_range=y_range).decode(workers=workers)
