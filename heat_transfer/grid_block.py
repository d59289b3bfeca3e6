"""
Double-buffered, ghost-padded storage for one worker's block of the grid.
"""

from enum import IntEnum
from typing import Tuple

import numpy as np

from heat_transfer.case_setup import HeatTransferCase
from heat_transfer.topology import Topology


class AccessStatus(IntEnum):
    """Result of a cell accessor."""

    OK = 0
    OUT_OF_RANGE = 1


class GridBlock:
    """
    Owns the two buffers of a worker's block.

    Each buffer has shape ``(block_height + 2, block_width + 2)``: owned cells
    live at ``1..block_height`` x ``1..block_width`` and a one-cell ghost border
    holds data imported from neighbours. Ghost cells facing an absent
    neighbour are never written and stay at zero.

    Attributes:
        buffers (np.ndarray): Array of shape (2, block_height + 2, block_width + 2).
        working (int): Index of the buffer holding the current state.
    """

    def __init__(self, block_height: int, block_width: int):
        if block_height < 1 or block_width < 1:
            raise ValueError(
                f"Block dimensions must be positive, got {block_height}x{block_width}."
            )
        self.block_height = block_height
        self.block_width = block_width
        self.buffers = np.zeros((2, block_height + 2, block_width + 2))
        self.working = 0

    @classmethod
    def from_topology(cls, topology: Topology) -> "GridBlock":
        """Allocates the block of a worker and seeds it with the initial condition."""
        grid = cls(topology.block_height, topology.block_width)
        grid.seed(topology.offset, (topology.height, topology.width))
        return grid

    def seed(self, offset: Tuple[int, int], global_shape: Tuple[int, int]) -> None:
        """
        Fills the owned cells of buffer 0 from the initial condition.

        Args:
            offset (tuple): Global coordinate of the first owned cell.
            global_shape (tuple): Global grid height and width.
        """
        self.buffers[0, 1:-1, 1:-1] = HeatTransferCase.setup_case(
            (self.block_height, self.block_width), offset, global_shape
        )

    @property
    def current(self) -> np.ndarray:
        return self.buffers[self.working]

    @property
    def next(self) -> np.ndarray:
        return self.buffers[1 - self.working]

    @property
    def interior(self) -> np.ndarray:
        """View of the owned cells of the current buffer."""
        return self.current[1:-1, 1:-1]

    def _in_range(self, i: int, j: int, buffer: int) -> bool:
        return (
            0 <= i < self.block_height + 2
            and 0 <= j < self.block_width + 2
            and buffer in (0, 1)
        )

    def get(self, i: int, j: int, buffer: int) -> Tuple[AccessStatus, float]:
        """
        Reads cell (i, j) of the given buffer.

        Returns:
            tuple: ``(AccessStatus.OK, value)``, or
            ``(AccessStatus.OUT_OF_RANGE, nan)`` for an index outside the
            padded block or a buffer id other than 0 or 1.
        """
        if not self._in_range(i, j, buffer):
            return AccessStatus.OUT_OF_RANGE, float("nan")
        return AccessStatus.OK, float(self.buffers[buffer, i, j])

    def set(self, i: int, j: int, buffer: int, value: float) -> AccessStatus:
        """Writes cell (i, j) of the given buffer, with the same checks as get()."""
        if not self._in_range(i, j, buffer):
            return AccessStatus.OUT_OF_RANGE
        self.buffers[buffer, i, j] = value
        return AccessStatus.OK

    def swap(self) -> None:
        """Makes the next buffer current."""
        self.working = 1 - self.working
