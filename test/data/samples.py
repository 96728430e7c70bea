from mymca.section import idx2pos, CELL_COUNT
from test.data.nbt import *

# ====================================================================
# Packed indices
# ====================================================================
def pack(nbits, size, data):
    """ join `size` bits items in chunks of nbits

        The reverse of bitpack.unpack(): items may span two
        consecutive chunks.
    """
    dest = []

    busy = 0
    acc = 0
    mask = (1<<nbits)-1

    for n in data:
        acc |= (n<<busy)
        busy += size
        while busy >= nbits:
            dest.append(acc & mask)
            acc >>= nbits
            busy -= nbits

    if busy:
        dest.append(acc & mask)

    return dest

def signed(n, nbits=64):
    return n - (1<<nbits) if n >= 1<<(nbits-1) else n

def NBITS(palette):
    return max(4, (len(palette)-1).bit_length())

def PACK_PADDED(nbits, indices):
    """ Pack indices the way chunks written since 20w17a do:
        no index spans two longs
    """
    per_long = 64//nbits
    result = []
    for start in range(0, len(indices), per_long):
        acc = 0
        for i, v in enumerate(indices[start:start+per_long]):
            acc |= v << (i*nbits)
        result.append(signed(acc))

    return result

def PACK_SPANNING(nbits, indices):
    return [signed(n) for n in pack(64, nbits, indices)]

# ====================================================================
# Sections
# ====================================================================
def BLOCK_STATE(name, **properties):
    state = Compound(Name=String(name))
    if properties:
        state.value['Properties'] = Compound(**{k: String(v) for k, v in properties.items()})

    return state

def PALETTE(*states):
    return List(CompoundTrait, [BLOCK_STATE(s) if isinstance(s, str) else s for s in states])

def SECTION(y, palette, indices=None, *, padded=True):
    """ A section as written since 1.18
    """
    states = Compound(palette=PALETTE(*palette))
    if indices is not None:
        pack_ = PACK_PADDED if padded else PACK_SPANNING
        states.value['data'] = LongArray(pack_(NBITS(palette), indices))

    return Compound(Y=Byte(y), block_states=states)

def FLATTENED_SECTION(y, palette, indices=None, *, padded=False):
    """ A section as written from 1.13 to 1.17
    """
    section = Compound(Y=Byte(y), Palette=PALETTE(*palette))
    if indices is not None:
        pack_ = PACK_PADDED if padded else PACK_SPANNING
        section.value['BlockStates'] = LongArray(pack_(NBITS(palette), indices))

    return section

def LEGACY_SECTION(y, ids, data=None, add=None):
    """ A section with numeric block ids, before 1.13
    """
    def nibbles(values):
        return [signed(values[i] | values[i+1] << 4, 8) for i in range(0, len(values), 2)]

    if data is None:
        data = [0]*CELL_COUNT

    section = Compound(
        Y=Byte(y),
        Blocks=ByteArray(signed(v & 0xFF, 8) for v in ids),
        Data=ByteArray(nibbles(data)),
    )
    if add is not None:
        section.value['Add'] = ByteArray(nibbles(add))

    return section

# ====================================================================
# Chunks
# ====================================================================
def CHUNK_TREE(*sections, x=None, z=None, data_version=3465):
    """ A chunk as written since 1.18: sections at the root
    """
    root = Compound(DataVersion=Int(data_version))
    if x is not None:
        root.value['xPos'] = Int(x)
    if z is not None:
        root.value['zPos'] = Int(z)
    root.value['sections'] = List(CompoundTrait, sections)

    return root

def LEVEL_CHUNK_TREE(*sections, x=None, z=None, data_version=1976):
    """ A chunk as written before 1.18: sections in the Level compound
    """
    level = Compound()
    if x is not None:
        level.value['xPos'] = Int(x)
    if z is not None:
        level.value['zPos'] = Int(z)
    level.value['Sections'] = List(CompoundTrait, sections)

    return Compound(DataVersion=Int(data_version), Level=level)

# ====================================================================
# Samples
# ====================================================================
""" Stone below y=8, air above
"""
HALF_STONE = [1 if idx2pos(i)[1] < 8 else 0 for i in range(CELL_COUNT)]

""" Cycle through a 20 entries palette (5 bits indices)
"""
RAINBOW_PALETTE = ["minecraft:air"] + ["minecraft:{}_wool".format(n) for n in range(19)]
RAINBOW = [i % len(RAINBOW_PALETTE) for i in range(CELL_COUNT)]
