import math
import random

from mymca.chunk import Chunk
from mymca.section import Block

""" Procedural terrain, for when there is no region to show
"""

STONE = 1
GRASS = 2
DIRT = 3

Y_RANGE = (0, 10)

def generate(chunk_count=4, *, seed=None):
    """ Generate a square of rolling terrain covering at least
        `chunk_count` chunks, returned as one single Chunk.

        Blocks use legacy numeric ids. The reported vertical bounds are
        always Y_RANGE.
    """
    rng = random.Random(seed)
    per_side = math.ceil(math.sqrt(max(chunk_count, 0)))

    blocks = []
    for cx in range(per_side):
        for cz in range(per_side):
            for x in range(16):
                for z in range(16):
                    wx = cx*16+x
                    wz = cz*16+z
                    height = math.floor(6 + math.sin(wx*0.3)*math.cos(wz*0.3)*3)

                    for y in range(height):
                        blocks.append(Block(wx, y, wz, GRASS if rng.random() > 0.7 else STONE, 0))

                    # top layer
                    if height > 0:
                        blocks.append(Block(wx, height, wz, DIRT if rng.random() > 0.8 else GRASS, 0))

    return Chunk(0, 0, blocks, y_range=Y_RANGE)
