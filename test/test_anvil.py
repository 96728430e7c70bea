import unittest
import warnings

from mymca.anvil import *
from test.data.region import *

def EMPTY_SLOTS():
    return [(idx, idx%32, idx//32, 0, 0) for idx in range(1024)]

class TestLocationTable(unittest.TestCase):
    def test_1(self):
        """ Regions without data should have all chunks empty
        """
        slots = parse_location_table(EMPTY_REGION)
        self.assertEqual([tuple(slot[:5]) for slot in slots], EMPTY_SLOTS())
        self.assertTrue(all(slot.empty for slot in slots))

    def test_2(self):
        """ A table shorter than one page is fatal
        """
        for size in (0, 1, PAGE_SIZE-1):
            with self.assertRaises(MalformedLocationTableError):
                parse_location_table(bytes(size))

    def test_3(self):
        """ Missing timestamps are read as 0
        """
        slots = parse_location_table(bytes(PAGE_SIZE))
        self.assertEqual(len(slots), 1024)
        self.assertTrue(all(slot.timestamp == 0 for slot in slots))

    def test_4(self):
        """ Slot index i maps to (i mod 32, i div 32)
        """
        data = REGION(12*PAGE_SIZE,
            CHUNK(3, 4, pageaddr=5, pagecount=2, timestamp=1234, data=b"x"),
            CHUNK(31, 31, pageaddr=9, pagecount=1, data=b"y"),
        )
        slots = parse_location_table(data)
        allocated = [slot for slot in slots if not slot.empty]
        self.assertEqual(allocated, [
            ChunkSlot(4*32+3, 3, 4, 5, 2, 1234),
            ChunkSlot(1023, 31, 31, 9, 1, 0),
        ])
        self.assertEqual(allocated[0].offset, 5*PAGE_SIZE)
        self.assertEqual(allocated[0].length, 2*PAGE_SIZE)
        self.assertEqual(allocated[0].key, "3,4")

    def test_5(self):
        """ A slot is empty if either its address or its size is 0
        """
        data = bytearray(EMPTY_REGION)
        data[0:4] = (5<<8).to_bytes(4, 'big')
        data[4:8] = (1).to_bytes(4, 'big')
        slots = parse_location_table(data)
        self.assertTrue(slots[0].empty)
        self.assertTrue(slots[1].empty)

    def test_6(self):
        """ Chunk data located in the header are reported
        """
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")

            parse_location_table(REGION(4*PAGE_SIZE,
              # at page 1, data are in the region header
              CHUNK(3,4,pageaddr=1,pagecount=2,data=b"some data"),
            ))

            self.assertEqual(len(w), 1)
            self.assertTrue(issubclass(w[0].category, MyMCAWarning))

    def test_bytes_to_chunk_addr(self):
        addr = bytes_to_chunk_addr(bytes.fromhex("102030405060"), 0)
        self.assertEqual(addr, (0x102030, 0x40))

        addr = bytes_to_chunk_addr(bytes.fromhex("DEADBEEF102030405060"), 4)
        self.assertEqual(addr, (0x102030, 0x40))

class TestBitmap(unittest.TestCase):
    def test_1(self):
        """ Anvil files should compute logical page usage bitmap
        """
        region = Anvil(REGION(8*PAGE_SIZE,
          CHUNK(3,4,pageaddr=5,pagecount=2,data=b"some data"),
        ))

        bitmap = region.bitmap()
        self.assertSequenceEqual(bitmap, ((),(),(),(),(), ((3,4),), ((3,4),)))
        #                                  0  1  2  3  4   5        6

    def test_2(self):
        """ Anvil files bitmap should trace overlapping chunks
        """
        region = Anvil(REGION(8*PAGE_SIZE,
          CHUNK(0,1,pageaddr=4,pagecount=2,data=b"some data"),
          CHUNK(3,4,pageaddr=5,pagecount=2,data=b"other data"),
        ))

        with warnings.catch_warnings(record=True) as w:
            # Cause all warnings to always be triggered.
            warnings.simplefilter("always")

            bitmap = region.bitmap()
            self.assertSequenceEqual(bitmap, ((),(),(),(),((0,1),), ((0,1),(3,4),), ((3,4),)))
            #                                  0  1  2  3  4         5                6

            self.assertEqual(len(w), 1)

class TestAnvil(unittest.TestCase):
    def test_1(self):
        """ Anvil files can return raw chunk data
        """
        data=b"some random data"
        region = Anvil(REGION(8*PAGE_SIZE,
          CHUNK(3,4,pageaddr=5,pagecount=2,data=data),
        ))

        content = region.get_chunk_data(3,4)
        self.assertTrue(bytes(content).startswith(data))
        self.assertEqual(len(content), 2*PAGE_SIZE)

    def test_2(self):
        """ Pages missing at the end of file are reported
        """
        data=b"some random data"
        region = Anvil(REGION(6*PAGE_SIZE,
          CHUNK(3,4,pageaddr=5,pagecount=3,data=data),
        ))

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")

            content = region.get_chunk_data(3,4)
            self.assertEqual(len(w), 1)

        self.assertEqual(len(content), PAGE_SIZE)

    def test_3(self):
        """ Empty slots have no data
        """
        region = Anvil(EMPTY_REGION)
        self.assertEqual(bytes(region.get_chunk_data(0,0)), b"")

    def test_chunks(self):
        region = Anvil(REGION(8*PAGE_SIZE,
          CHUNK(1,0,pageaddr=2,data=b"a"),
          CHUNK(0,1,pageaddr=3,data=b"b"),
        ))
        self.assertEqual([(slot.x, slot.z) for slot in region.chunks()], [(1,0), (0,1)])
        self.assertEqual(len(list(region.slots())), 1024)

    def test_chunk_info(self):
        region = Anvil(EMPTY_REGION)
        self.assertEqual(region.chunk_info(1,2), ChunkSlot(65, 1, 2, 0, 0, 0))
        with self.assertRaises(IndexError):
            region.chunk_info(32, 0)

    def test_incomplete_header(self):
        with self.assertRaises(MalformedLocationTableError):
            Anvil(b"\x00"*(PAGE_SIZE//2))
