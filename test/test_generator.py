import unittest

from mymca.generator import *

class TestGenerator(unittest.TestCase):
    def test_1(self):
        """ The same seed gives the same terrain
        """
        self.assertEqual(generate(seed=42).blocks, generate(seed=42).blocks)

    def test_2(self):
        chunk = generate(4, seed=1)
        self.assertTrue(len(chunk) > 0)
        self.assertEqual({blk.id for blk in chunk} - {STONE, GRASS, DIRT}, set())
        self.assertEqual({(blk.x//16, blk.z//16) for blk in chunk}, {(0, 0), (0, 1), (1, 0), (1, 1)})
        self.assertEqual((chunk.min_y, chunk.max_y), Y_RANGE)
        self.assertTrue(all(0 <= blk.y < 10 for blk in chunk))

    def test_3(self):
        """ One column per (x, z): stone or grass, topped by grass or dirt
        """
        chunk = generate(1, seed=0)
        columns = {}
        for blk in chunk:
            columns.setdefault((blk.x, blk.z), []).append(blk)

        self.assertEqual(len(columns), 256)
        for column in columns.values():
            self.assertEqual([blk.y for blk in column], list(range(len(column))))
            *body, top = column
            self.assertIn(top.id, (GRASS, DIRT))
            self.assertEqual({blk.id for blk in body} - {STONE, GRASS}, set())

    def test_4(self):
        chunk = generate(0)
        self.assertEqual(len(chunk), 0)
        self.assertEqual((chunk.min_y, chunk.max_y), Y_RANGE)
