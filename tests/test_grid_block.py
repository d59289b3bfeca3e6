import unittest
import numpy as np
import sys
import os

# Disable Numba JIT compilation for testing
os.environ["NUMBA_DISABLE_JIT"] = "1"

# Add the repository root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from heat_transfer.case_setup import HeatTransferCase
from heat_transfer.grid_block import AccessStatus, GridBlock
from heat_transfer.output import assemble_field
from heat_transfer.topology import describe_layout, plan_topology


def initial_field(height, width):
    return np.fromfunction(
        lambda i, j: (i + 1) * (height - i) * (j + 1) * (width - j), (height, width)
    )


class TestGridBlock(unittest.TestCase):
    """
    Test suite for the grid_block module.
    """

    def setUp(self):
        self.grid = GridBlock.from_topology(plan_topology(4, 4, 1, 0))

    def test_shape_and_ghost_border(self):
        self.assertEqual(self.grid.buffers.shape, (2, 6, 6))
        self.assertEqual(self.grid.working, 0)
        current = self.grid.current
        np.testing.assert_array_equal(current[0, :], 0.0)
        np.testing.assert_array_equal(current[-1, :], 0.0)
        np.testing.assert_array_equal(current[:, 0], 0.0)
        np.testing.assert_array_equal(current[:, -1], 0.0)
        np.testing.assert_array_equal(self.grid.next, 0.0)

    def test_corner_values(self):
        status, value = self.grid.get(1, 1, 0)
        self.assertEqual(status, AccessStatus.OK)
        self.assertEqual(value, 16.0)
        status, value = self.grid.get(4, 4, 0)
        self.assertEqual(status, AccessStatus.OK)
        self.assertEqual(value, 16.0)
        self.assertEqual(self.grid.get(2, 2, 0)[1], 36.0)

    def test_single_block_matches_formula(self):
        np.testing.assert_array_equal(self.grid.interior, initial_field(4, 4))
        self.assertEqual(HeatTransferCase.initial_value(0, 0, 4, 4), 16)

    def test_assembled_blocks_reproduce_single_block(self):
        for height, width, size in [(8, 8, 4), (12, 12, 6), (6, 9, 3), (16, 24, 8)]:
            layout = describe_layout(height, width, size)
            blocks = [GridBlock.from_topology(t).interior for t in layout]
            offsets = [t.offset for t in layout]
            field = assemble_field(blocks, offsets, (height, width))
            np.testing.assert_array_equal(field, initial_field(height, width))

    def test_out_of_range_access(self):
        for i, j, buffer in [(-1, 0, 0), (6, 0, 0), (0, 6, 0), (0, -1, 1), (1, 1, 2), (1, 1, -1)]:
            status, value = self.grid.get(i, j, buffer)
            self.assertEqual(status, AccessStatus.OUT_OF_RANGE)
            self.assertTrue(np.isnan(value))
            before = self.grid.buffers.copy()
            self.assertEqual(self.grid.set(i, j, buffer, 1.0), AccessStatus.OUT_OF_RANGE)
            np.testing.assert_array_equal(self.grid.buffers, before)

    def test_set_reaches_ghost_cells(self):
        self.assertEqual(self.grid.set(0, 5, 1, 2.5), AccessStatus.OK)
        self.assertEqual(self.grid.get(0, 5, 1), (AccessStatus.OK, 2.5))

    def test_swap(self):
        current = self.grid.current
        self.grid.swap()
        self.assertEqual(self.grid.working, 1)
        self.assertTrue(np.shares_memory(self.grid.next, current))
        self.grid.swap()
        self.assertEqual(self.grid.working, 0)

    def test_invalid_dimensions(self):
        with self.assertRaises(ValueError):
            GridBlock(0, 4)


if __name__ == "__main__":
    unittest.main()
