"""
Debug output of the simulation state: padded block dumps and the assembled global field.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
from mpi4py import MPI

from heat_transfer.grid_block import GridBlock
from heat_transfer.topology import Topology


logger = logging.getLogger(__name__)


def format_block(grid: GridBlock, rank: int) -> str:
    """
    Renders both padded buffers of a worker's block, ghost cells included.

    Args:
        grid (GridBlock): The block to render.
        rank (int): Rank of the owning worker, used in the headers.
    """
    lines = []
    for g in range(2):
        lines.append(f"=== Ext. Block {g} of worker: {rank}")
        for row in grid.buffers[g]:
            lines.append("".join(f"  {val:.2f}" for val in row))
        lines.append("")
    return "\n".join(lines)


def format_field(field: np.ndarray) -> str:
    """Renders an assembled global field, one grid row per line."""
    return "\n".join("".join(f"  {val:.2f}" for val in row) for row in field)


def assemble_field(
    blocks: List[np.ndarray],
    offsets: List[Tuple[int, int]],
    global_shape: Tuple[int, int],
) -> np.ndarray:
    """
    Places every worker's owned cells at its global offset.

    Args:
        blocks (list): Owned cells of each worker.
        offsets (list): Global coordinate of each block's first owned cell.
        global_shape (tuple): Global grid height and width.

    Returns:
        np.ndarray: The global field.
    """
    field = np.zeros(global_shape)
    for block, (off_x, off_y) in zip(blocks, offsets):
        rows, cols = block.shape
        field[off_x : off_x + rows, off_y : off_y + cols] = block
    return field


def gather_field(
    grid: GridBlock, topology: Topology, comm: MPI.Comm, root: int = 0
) -> Optional[np.ndarray]:
    """
    Gathers the current state of all blocks and assembles it on the root.

    Returns:
        np.ndarray or None: The global field on ``root``, None elsewhere.
    """
    all_blocks = comm.gather(grid.interior.copy(), root=root)
    all_offsets = comm.gather(topology.offset, root=root)

    # comm.gather returns None on non-root ranks
    if comm.Get_rank() != root:
        return None

    assert all_blocks is not None and all_offsets is not None
    logger.debug(f"Assembling global field from {len(all_blocks)} blocks")
    return assemble_field(all_blocks, all_offsets, (topology.height, topology.width))
