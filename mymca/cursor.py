import struct

from mymca.error import MyMCAError

""" Sequential big-endian reader over a fixed byte buffer
"""

# ====================================================================
# Errors
# ====================================================================
class OutOfBoundsError(MyMCAError):
    def __init__(self, offset, count, size):
        super().__init__("Cannot read {count} byte(s) at offset {offset} (buffer size is {size})",
                         offset=offset, count=count, size=size)

# ====================================================================
# Formats
# ====================================================================
INT8 = struct.Struct('>b')
INT16 = struct.Struct('>h')
INT32 = struct.Struct('>i')
INT64 = struct.Struct('>q')
UINT8 = struct.Struct('>B')
UINT16 = struct.Struct('>H')
UINT32 = struct.Struct('>I')
FLOAT = struct.Struct('>f')
DOUBLE = struct.Struct('>d')

# ====================================================================
# Cursor
# ====================================================================
class Cursor:
    """ A read cursor over a byte buffer.

        All multi-bytes integers are big-endian. Reading past the
        end of the buffer raises OutOfBoundsError and leaves the
        cursor unchanged.
    """
    def __init__(self, data, offset=0):
        self._data = memoryview(data).cast('B')
        self._offset = 0
        self.seek(offset)

    def __repr__(self):
        return "Cursor({}/{})".format(self._offset, len(self._data))

    #------------------------------------
    # Position
    #------------------------------------
    def tell(self):
        return self._offset

    def seek(self, offset):
        if not 0 <= offset <= len(self._data):
            raise OutOfBoundsError(offset, 0, len(self._data))

        self._offset = offset

    def remaining(self):
        return len(self._data) - self._offset

    def skip(self, count):
        self._take(count)

    #------------------------------------
    # Raw access
    #------------------------------------
    def _take(self, count):
        start = self._offset
        end = start + count
        if count < 0 or end > len(self._data):
            raise OutOfBoundsError(start, count, len(self._data))

        self._offset = end
        return self._data[start:end]

    def unpack(self, fmt):
        """ Read one value using the `struct.Struct` fmt
        """
        value, = fmt.unpack(self._take(fmt.size))
        return value

    def read_bytes(self, count):
        """ Return the next `count` bytes as a `bytes` object
        """
        return bytes(self._take(count))

    def read_view(self, count):
        """ Same as read_bytes() but without copying the data
        """
        return self._take(count)

    #------------------------------------
    # Numbers
    #------------------------------------
    def read_uint8(self):
        return self.unpack(UINT8)

    def read_uint16(self):
        return self.unpack(UINT16)

    def read_uint32(self):
        return self.unpack(UINT32)

    def read_int8(self):
        return self.unpack(INT8)

    def read_int16(self):
        return self.unpack(INT16)

    def read_int32(self):
        return self.unpack(INT32)

    def read_int64(self):
        return self.unpack(INT64)

    def read_float(self):
        return self.unpack(FLOAT)

    def read_double(self):
        return self.unpack(DOUBLE)
