import sys
from array import array

from mymca.cursor import Cursor
from mymca.visitor import Visitor, Exporter
from mymca.error import *
import mymca.cursor as cursor
import mymca.bitpack as bitpack

# ====================================================================
# Constants
# ====================================================================
MAX_DEPTH = 512

# ====================================================================
# Errors
# ====================================================================
class NBTError(MyMCAError):
    pass

class UnknownTagError(NBTError):
    def __init__(self, ID, offset):
        super().__init__("Unknown tag type {ID} at offset {offset}", ID=ID, offset=offset)

class InvalidStringError(NBTError):
    def __init__(self, raw, reason):
        super().__init__("Invalid string {raw!r}: {reason}", raw=bytes(raw[:32]), reason=reason)

class TooDeepError(NBTError):
    def __init__(self, max_depth):
        super().__init__("Tag tree nested deeper than {max_depth} levels", max_depth=max_depth)

# ====================================================================
# Module functions
# ====================================================================
def decode_string(raw):
    """ Decode a string payload.

        Strings are written in Java's "modified UTF-8": NUL is stored as C0 80
        and supplementary characters as surrogate pairs. Plain UTF-8 is a subset
        of the accepted input.
    """
    raw = bytes(raw)
    try:
        return raw.decode("utf8")
    except UnicodeDecodeError:
        pass

    try:
        text = raw.replace(b"\xc0\x80", b"\x00").decode("utf8", "surrogatepass")
        return text.encode("utf16", "surrogatepass").decode("utf16")
    except UnicodeError as e:
        raise InvalidStringError(raw, e) from e

def trait_from_id(ID, offset=None):
    try:
        return TraitMetaclass.TRAITS[ID]
    except KeyError:
        raise UnknownTagError(ID, offset) from None

def parse_id(cur):
    return cur.read_uint8()

def parse_tag(cur):
    offset = cur.tell()
    return trait_from_id(parse_id(cur), offset)

def parse_name(cur):
    l = cur.read_uint16()
    return decode_string(cur.read_view(l))

def parse(base, offset=0, *, max_depth=MAX_DEPTH):
    """ Parse one named tag from base[offset:]

        Return a (node, name, offset) tuple where offset is the position
        right after the parsed tag. A lone End tag is a valid, empty tree:
        the name is None in that case.
    """
    cur = base if isinstance(base, Cursor) else Cursor(base, offset)
    trait = parse_tag(cur)
    if trait is EndTrait:
        return TagNode(EndTrait), None, cur.tell()

    name = parse_name(cur)
    parser = Parser(cur, max_depth=max_depth)
    result = parser.read_payload(trait)
    parser.run()

    return result, name, cur.tell()

# ====================================================================
# Tag nodes
# ====================================================================
class TagNode:
    """ A node of the tag tree.

        A node is a (trait, value) pair. The trait is the discriminant (see
        the `*Trait` classes below) and the value a native Python object:

        - int for Byte, Short, Int and Long
        - float for Float and Double
        - str for String
        - array.array for ByteArray, IntArray and LongArray
        - list of TagNode for List (element type in `element_trait`)
        - dict name -> TagNode for Compound, in stream order
        - None for End
    """
    __slots__ = ('_trait', '_value', '_element_trait')

    def __init__(self, trait, value=None, *, element_trait=None):
        self._trait = trait
        self._value = value
        self._element_trait = element_trait

    def __repr__(self):
        if self._trait is ListTrait:
            return "TagNode({}[{}], {!r})".format(self._trait.NAME, self._element_trait.NAME, self._value)

        return "TagNode({}, {!r})".format(self._trait.NAME, self._value)

    def __str__(self):
        return str(self.export())

    #------------------------------------
    # Properties
    #------------------------------------
    @property
    def trait(self):
        return self._trait

    @property
    def id(self):
        return self._trait.ID

    @property
    def value(self):
        return self._value

    @property
    def element_trait(self):
        return self._element_trait

    #------------------------------------
    # Rich comparisons
    #------------------------------------
    def __eq__(self, other):
        if self is other:
            return True

        if not isinstance(other, TagNode):
            return NotImplemented

        return self._trait is other._trait \
                and self._element_trait is other._element_trait \
                and self._value == other._value

    __hash__ = None

    #------------------------------------
    # Container interface
    #------------------------------------
    def __getitem__(self, idx):
        return self._value[idx]

    def __contains__(self, idx):
        return self._trait is CompoundTrait and idx in self._value

    def __len__(self):
        return len(self._value)

    def __iter__(self):
        return iter(self._value)

    def get(self, name, default=None):
        """ Get a member of a compound.

            Return default if the node is not a compound or doesn't
            have that member.
        """
        if self._trait is not CompoundTrait:
            return default

        return self._value.get(name, default)

    #------------------------------------
    # Tree traversal
    #------------------------------------
    def children(self):
        """ Yield a (name, node) tupple for each child of
            the node, in stream order.
        """
        if self._trait is CompoundTrait:
            return self._value.items()
        if self._trait is ListTrait:
            return enumerate(self._value)

        return ()

    def visit(self, visitor=Visitor(), *, rootname="", filter=lambda path, name, node: True):
        """ Iterate over the tag tree in depth-first order, calling
            the visitor's methods when entering and leaving the node

            The filter parameter controls if the subtree at path
            should be explored
        """
        def curry(f, *args):
            return lambda : f(*args)

        def enter(path, name, node):
            stack.append(curry(leave, path, name, node))
            if filter(path, name, node):
                for childname, childnode in reversed(list(node.children())):
                    stack.append(curry(enter, path + "." + str(childname), childname, childnode))

            return visitor.enter(path, name, node)

        def leave(path, name, node):
            return visitor.leave(path, name, node)

        def close():
            return visitor.close()

        stack = [close, curry(enter, rootname, rootname, self)]
        while stack:
            action = stack.pop()
            result = action()
            if result is not None:
                yield result

    def walk(self, *, rootname="", filter=lambda path, name, node: True):
        """ Iterate over the tag tree yielding (path, name, node) tupple
            for each item.
        """
        class V(Visitor):
            def enter(self, path, name, node):
                return (path, name, node)

        return self.visit(V(), rootname=rootname, filter=filter)

    def export(self):
        """ Convert the tree to native Python objects

            An empty tree (a lone End tag) exports as None.
        """
        if self._trait is EndTrait:
            return None

        result, = self.visit(Exporter())
        return result

# ====================================================================
# Parser
# ====================================================================
class CompoundFrame:
    __slots__ = ('node',)

    def __init__(self, node):
        self.node = node

    def step(self, parser):
        cur = parser.cursor
        trait = parse_tag(cur)
        if trait is EndTrait:
            return False

        name = parse_name(cur)
        self.node.value[name] = parser.read_payload(trait)
        return True

class ListFrame:
    __slots__ = ('node', 'remaining')

    def __init__(self, node, count):
        self.node = node
        self.remaining = count

    def step(self, parser):
        if self.remaining <= 0:
            return False

        self.remaining -= 1
        self.node.value.append(parser.read_payload(self.node.element_trait))
        return True

class Parser:
    """ Non-recursive tag tree parser.

        Open lists and compounds are kept on an explicit stack, so the
        nesting limit does not depend on the interpreter's stack size.
    """
    def __init__(self, cur, *, max_depth=MAX_DEPTH):
        self.cursor = cur
        self.max_depth = max_depth
        self._stack = []

    def read_payload(self, trait):
        node, frame = trait.read_payload(self.cursor)
        if frame is not None:
            if len(self._stack) >= self.max_depth:
                raise TooDeepError(self.max_depth)
            self._stack.append(frame)

        return node

    def run(self):
        stack = self._stack
        while stack:
            if not stack[-1].step(self):
                stack.pop()

# ====================================================================
# Readers
# ====================================================================
class Reader:
    def __init__(self, trait):
        self._trait = trait

    def read(self, cur):
        """ Read a payload at the cursor position.

            Return a (node, frame) tuple. The frame is None unless the
            node is a container whose items remain to be parsed.
        """
        raise NotImplementedError

class AtomReader(Reader):
    def read(self, cur):
        return TagNode(self._trait, cur.unpack(self._trait.FORMAT)), None

class ArrayReader(Reader):
    def read(self, cur):
        count = cur.read_int32()
        if count < 0:
            count = 0

        values = array(self._trait.TYPECODE)
        values.frombytes(cur.read_view(count*self._trait.SIZE))
        if sys.byteorder == "little" and values.itemsize > 1:
            values.byteswap()

        return TagNode(self._trait, values), None

class StringReader(Reader):
    def read(self, cur):
        l = cur.read_uint16()
        return TagNode(self._trait, decode_string(cur.read_view(l))), None

class ListReader(Reader):
    def read(self, cur):
        offset = cur.tell()
        ID = parse_id(cur)
        count = cur.read_int32()
        # """ If the length of the list is 0 or negative,
        #     the type may be 0 (End) but otherwise it must
        #     be any other type. """
        #  -- https://wiki.vg/NBT#Specification
        if count <= 0:
            node = TagNode(self._trait, [], element_trait=TraitMetaclass.TRAITS.get(ID, EndTrait))
            return node, None

        child_trait = trait_from_id(ID, offset)
        if child_trait is EndTrait:
            raise NBTError("List at offset {offset} holds {count} End tags", offset=offset, count=count)

        node = TagNode(self._trait, [], element_trait=child_trait)
        return node, ListFrame(node, count)

class CompoundReader(Reader):
    def read(self, cur):
        node = TagNode(self._trait, {})
        return node, CompoundFrame(node)

# ====================================================================
# Traits
# ====================================================================
class TraitMetaclass(type):
    TRAITS = {}

    """ A little bit of black magic to tune traits attributes
    """
    def __new__(meta, cls, bases, dct):
        cls = super().__new__(meta, cls, bases, dct)

        # tune READER
        READER = getattr(cls, 'READER', None)
        if READER is not None:
          cls.read_payload = READER(cls).read

        # collect traits IDs
        ID = dct.get('ID')
        if ID is not None:
          assert ID not in meta.TRAITS, "duplicate ID for " + cls.__name__ + " and " + meta.TRAITS[ID].__name__
          meta.TRAITS[ID] = cls

        return cls

class Trait(metaclass=TraitMetaclass):
    """ Define various properties for individual types
    """
    @classmethod
    def accept(cls, visitor):
        """ Call the most specialized visitor method for this node
        """
        return getattr(visitor, cls.VISIT)()

class AtomTrait(Trait):
    READER = AtomReader
    VISIT = 'visitAtom'

class ArrayTrait(Trait):
    READER = ArrayReader
    VISIT = 'visitArray'

class EndTrait(Trait):
    ID = 0
    NAME = 'End'
    VISIT = 'visitEnd'

class ByteTrait(AtomTrait):
    ID = 1
    NAME = 'Byte'
    SIZE = 1
    FORMAT = cursor.INT8
    VISIT = 'visitByte'

class ShortTrait(AtomTrait):
    ID = 2
    NAME = 'Short'
    SIZE = 2
    FORMAT = cursor.INT16
    VISIT = 'visitShort'

class IntTrait(AtomTrait):
    ID = 3
    NAME = 'Int'
    SIZE = 4
    FORMAT = cursor.INT32
    VISIT = 'visitInt'

class LongTrait(AtomTrait):
    ID = 4
    NAME = 'Long'
    SIZE = 8
    FORMAT = cursor.INT64
    VISIT = 'visitLong'

class FloatTrait(AtomTrait):
    ID = 5
    NAME = 'Float'
    SIZE = 4
    FORMAT = cursor.FLOAT
    VISIT = 'visitFloat'

class DoubleTrait(AtomTrait):
    ID = 6
    NAME = 'Double'
    SIZE = 8
    FORMAT = cursor.DOUBLE
    VISIT = 'visitDouble'

class ByteArrayTrait(ArrayTrait):
    ID = 7
    NAME = 'ByteArray'
    SIZE = 1
    TYPECODE = bitpack.INT_8
    TYPE = ByteTrait
    VISIT = 'visitByteArray'

class StringTrait(Trait):
    ID = 8
    NAME = 'String'
    READER = StringReader
    VISIT = 'visitString'

class ListTrait(Trait):
    ID = 9
    NAME = 'List'
    READER = ListReader
    VISIT = 'visitList'

class CompoundTrait(Trait):
    ID = 10
    NAME = 'Compound'
    READER = CompoundReader
    VISIT = 'visitCompound'

class IntArrayTrait(ArrayTrait):
    ID = 11
    NAME = 'IntArray'
    SIZE = 4
    TYPECODE = bitpack.INT_32
    TYPE = IntTrait
    VISIT = 'visitIntArray'

class LongArrayTrait(ArrayTrait):
    ID = 12
    NAME = 'LongArray'
    SIZE = 8
    TYPECODE = bitpack.INT_64
    TYPE = LongTrait
    VISIT = 'visitLongArray'
