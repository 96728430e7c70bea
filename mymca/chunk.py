import warnings

from mymca.error import *
from mymca.nbt import EndTrait, ByteTrait, ShortTrait, IntTrait, LongTrait, ListTrait, CompoundTrait
from mymca.section import Section, SectionError, Block

# ====================================================================
# Constants
# ====================================================================
DEFAULT_Y_RANGE = (0, 0)

# ====================================================================
# Errors
# ====================================================================
class MalformedChunkStructureError(MyMCAError):
    pass

# ====================================================================
# Chunk
# ====================================================================
class Chunk:
    """ The blocks of one chunk, with their vertical bounds.

        `x` and `z` are the chunk position in chunks. Blocks use world
        coordinates. `skipped` lists the (y, reason) of the sections
        that could not be decoded.
    """
    def __init__(self, x, z, blocks=(), *, y_range=None, data_version=None, skipped=()):
        self.x = x
        self.z = z
        self.blocks = list(blocks)
        self.data_version = data_version
        self.skipped = list(skipped)

        if y_range is None:
            if self.blocks:
                y_range = (min(blk.y for blk in self.blocks), max(blk.y for blk in self.blocks))
            else:
                y_range = DEFAULT_Y_RANGE
        self.min_y, self.max_y = y_range

    def __repr__(self):
        return "Chunk({},{},{} blocks,y={}..{})".format(self.x, self.z, len(self.blocks), self.min_y, self.max_y)

    def __len__(self):
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)

# ====================================================================
# Assembler
# ====================================================================
def _integer(node):
    if node is not None and node.trait in (ByteTrait, ShortTrait, IntTrait, LongTrait):
        return node.value

    return None

def _section_y(node):
    y = node.get('Y')
    return _integer(y)

def find_sections(root):
    """ Return the (holder, sections) of a chunk tree.

        Chunks written since 1.18 store their sections at the root, older
        chunks in a `Level` compound. `sections` is None when the chunk has
        no section list at all.
    """
    if root.trait is not CompoundTrait:
        raise MalformedChunkStructureError("The chunk root must be a compound, not {trait}", trait=root.trait.NAME)

    level = root.get('Level')
    if level is not None and level.trait is not CompoundTrait:
        raise MalformedChunkStructureError("Level must be a compound, not {trait}", trait=level.trait.NAME)

    if 'sections' in root or level is None:
        holder, sections = root, root.get('sections')
    else:
        holder, sections = level, level.get('Sections')

    if sections is not None:
        if sections.trait is not ListTrait:
            raise MalformedChunkStructureError("Sections must be a list, not {trait}", trait=sections.trait.NAME)
        if len(sections) and sections.element_trait is not CompoundTrait:
            raise MalformedChunkStructureError("Sections must be compounds, not {trait}",
                                               trait=sections.element_trait.NAME)

    return holder, sections

def assemble(root, cx=0, cz=0, *, skip=(), y_range=DEFAULT_Y_RANGE):
    """ Extract the blocks of a chunk tag tree.

        `cx` and `cz` are used unless the tree stores its own xPos/zPos.
        Blocks whose id is in `skip` are left out. `y_range` is the
        (min_y, max_y) reported when no block is extracted.
    """
    if root.trait is EndTrait:
        return Chunk(cx, cz, y_range=y_range)

    holder, sections = find_sections(root)
    data_version = _integer(root.get('DataVersion'))

    x = _integer(holder.get('xPos'))
    z = _integer(holder.get('zPos'))
    if x is None:
        x = cx
    if z is None:
        z = cz

    blocks = []
    skipped = []
    for node in sections or ():
        try:
            section = Section.fromNBT(x, z, node, data_version)
        except SectionError as e:
            y = _section_y(node)
            skipped.append((y, str(e)))
            warnings.warn(MyMCAWarning("Section {y} of chunk ({x},{z}) skipped: {reason}", y=y, x=x, z=z, reason=e))
            continue

        if section is not None:
            blocks.extend(section.blocks(skip))

    if not blocks:
        return Chunk(x, z, y_range=y_range, data_version=data_version, skipped=skipped)

    return Chunk(x, z, blocks, data_version=data_version, skipped=skipped)
