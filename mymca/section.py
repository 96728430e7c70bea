from collections import namedtuple

from mymca.bitpack import unpack, unpack_padded, packed_length
from mymca.error import *
from mymca.nbt import ByteTrait, ShortTrait, IntTrait, StringTrait, ListTrait, CompoundTrait, \
                      ByteArrayTrait, LongArrayTrait

# ====================================================================
# Constants
# ====================================================================
CELL_COUNT = 16*16*16

# First data version whose packed indices never span two longs (20w17a)
PADDED_DATA_VERSION = 2529

INTEGRAL_TRAITS = (ByteTrait, ShortTrait, IntTrait)

Block = namedtuple('Block', 'x y z id aux_data')

# ====================================================================
# Errors
# ====================================================================
class SectionError(MyMCAError):
    """ Raised when a section can't be decoded. The section is
        skipped, not the whole chunk.
    """
    pass

# ====================================================================
# Utilities
# ====================================================================
def idx2pos(idx):
    r,x = divmod(idx, 16)
    y,z = divmod(r, 16)

    return (x,y,z)

def pos2idx(x,y,z):
    return (y*16+z)*16+x

def block_state_index(palette, blockstate):
    """ Returns the index in the palette of the given block state

        If the block state is not already in the palette it is
        added.
    """
    try:
        return palette.index(blockstate)
    except ValueError:
        palette.append(blockstate)
        return len(palette)-1

def nbits(palette):
    """ Width of the packed indices for a palette
    """
    return max(4, (len(palette)-1).bit_length())

def unpack_indices(data, nbits, data_version=None):
    """ Unpack CELL_COUNT palette indices from an array of 64 bits integers.

        The layout (padded or not) is guessed from the array length when only
        one layout matches it, from the data version otherwise.
    """
    padded_len = packed_length(nbits, 64, CELL_COUNT, True)
    spanning_len = packed_length(nbits, 64, CELL_COUNT, False)

    if len(data) == padded_len != spanning_len:
        padded = True
    elif len(data) == spanning_len != padded_len:
        padded = False
    else:
        padded = data_version is None or data_version >= PADDED_DATA_VERSION

    expected = padded_len if padded else spanning_len
    if len(data) < expected:
        raise SectionError("Block states hold {count} longs, {expected} expected for {nbits} bits indices",
                           count=len(data), expected=expected, nbits=nbits)

    if padded:
        return unpack_padded(nbits, 64, data, count=CELL_COUNT)
    return unpack(nbits, 64, data, count=CELL_COUNT)

def parse_palette(node):
    """ Convert a block state palette to a list of (name, properties) tuples
    """
    if node is None:
        raise SectionError("Missing palette")
    if node.trait is not ListTrait or not len(node):
        raise SectionError("The palette is not a list of block states")

    palette = []
    for entry in node:
        if entry.trait is not CompoundTrait:
            raise SectionError("Palette entries must be compounds, not {trait}", trait=entry.trait.NAME)

        name = entry.get('Name')
        if name is None or name.trait is not StringTrait:
            raise SectionError("Palette entry without name")

        properties = entry.get('Properties')
        if properties is not None and properties.trait is CompoundTrait:
            properties = properties.export()
        else:
            properties = {}

        palette.append((name.value, properties))

    return palette

def _nibble(data, idx):
    byte = data[idx >> 1]
    return (byte >> 4) & 0x0F if idx & 1 else byte & 0x0F

# ====================================================================
# Section
# ====================================================================
class Section:
    """ A 16x16x16 block volume.

        Blocks are stored as indices in a palette of (id, aux_data) tuples.
        `cx`, `cy` and `cz` are the position of the section in the world,
        in sections.
    """
    #------------------------------------
    # Ctor / Factories
    #------------------------------------
    def __init__(self, cx, cy, cz, palette, blocks):
        if len(blocks) != CELL_COUNT:
            raise SectionError("A section holds {expected} blocks, not {count}",
                               expected=CELL_COUNT, count=len(blocks))

        self._cx = cx
        self._cy = cy
        self._cz = cz
        self._palette = palette
        self._blocks = blocks

        for blk in set(blocks):
            if not 0 <= blk < len(palette):
                raise SectionError("Palette index {idx} out of range [0,{count})", idx=blk, count=len(palette))

    @classmethod
    def fromNBT(cls, cx, cz, section, data_version=None):
        """ Build a section from its tag tree.

            Return None if the section carries no block data (sections
            holding only light data for example).
        """
        if not any(key in section for key in ('block_states', 'Palette', 'BlockStates', 'Blocks')):
            return None

        y = section.get('Y')
        if y is None or y.trait not in INTEGRAL_TRAITS:
            raise SectionError("Missing section Y position")

        states = section.get('block_states')
        if states is not None:
            if states.trait is not CompoundTrait:
                raise SectionError("block_states is not a compound")
            palette, data = states.get('palette'), states.get('data')
        elif 'Palette' in section or 'BlockStates' in section:
            palette, data = section.get('Palette'), section.get('BlockStates')
        else:
            return cls.fromLegacyNBT(cx, y.value, cz, section)

        palette = parse_palette(palette)
        if data is None:
            if len(palette) != 1:
                raise SectionError("Missing block states for a {count} entries palette", count=len(palette))
            blocks = [0]*CELL_COUNT
        elif data.trait is not LongArrayTrait:
            raise SectionError("Block states must be a long array, not {trait}", trait=data.trait.NAME)
        else:
            blocks = unpack_indices(data.value, nbits(palette), data_version)

        return cls(cx, y.value, cz, palette, blocks)

    @classmethod
    def fromLegacyNBT(cls, cx, cy, cz, section):
        """ Build a section from numeric block ids, before the
            introduction of block state palettes.
        """
        def byte_array(name, count, required=True):
            node = section.get(name)
            if node is None and not required:
                return None
            if node is None or node.trait is not ByteArrayTrait or len(node) < count:
                raise SectionError("{name} must be a byte array of {count} items", name=name, count=count)
            return node.value

        ids = byte_array('Blocks', CELL_COUNT)
        data = byte_array('Data', CELL_COUNT//2)
        add = byte_array('Add', CELL_COUNT//2, required=False)

        palette = []
        blocks = []
        for idx in range(CELL_COUNT):
            blk = ids[idx] & 0xFF
            if add is not None:
                blk |= _nibble(add, idx) << 8

            blocks.append(block_state_index(palette, (blk, _nibble(data, idx))))

        return cls(cx, cy, cz, palette, blocks)

    #------------------------------------
    # String conversion
    #------------------------------------
    def __repr__(self):
        return "Section({_cx},{_cy},{_cz},{_palette})".format(**vars(self))

    def __str__(self):
        return "Section({_cx},{_cy},{_cz})".format(**vars(self))

    #------------------------------------
    # Properties
    #------------------------------------
    @property
    def x(self):
        return self._cx

    @property
    def y(self):
        return self._cy

    @property
    def z(self):
        return self._cz

    @property
    def palette(self):
        return self._palette

    #------------------------------------
    # Block access
    #------------------------------------
    def block(self, x,y,z):
        """ Get the (id, aux_data) tuple at (x,y,z) in section's coordinates
        """
        assert 0 <= x < 16
        assert 0 <= y < 16
        assert 0 <= z < 16

        block = self._blocks[pos2idx(x,y,z)]
        return self._palette[block]

    def blocks(self, skip=()):
        """ Yield the blocks of the section in storage order, using
            world coordinates.

            Blocks whose id is in `skip` are not reported.
        """
        bx, by, bz = self._cx*16, self._cy*16, self._cz*16
        palette = self._palette
        for idx, blk in enumerate(self._blocks):
            id, aux_data = palette[blk]
            if id in skip:
                continue

            x, y, z = idx2pos(idx)
            yield Block(bx+x, by+y, bz+z, id, aux_data)
