"""
Cartesian process topology for the 2D domain decomposition.

The global grid of ``height x width`` cells is split into a
``dims[0] x dims[1]`` grid of equally sized blocks, one per worker. Each
worker knows its coordinate in that grid and the rank of its (up to) four
axis-aligned neighbours. There is no wraparound: a neighbour is absent
exactly at an edge of the topology.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from mpi4py import MPI

from heat_transfer.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Direction(IntEnum):
    """The four halo directions of a block, in exchange order."""

    LEFT = 0
    TOP = 1
    RIGHT = 2
    BOTTOM = 3

    @property
    def opposite(self) -> "Direction":
        return Direction((self + 2) % 4)


@dataclass(frozen=True)
class Topology:
    """
    This worker's view of the process topology.

    Attributes:
        height (int): Global grid height.
        width (int): Global grid width.
        size (int): Number of workers.
        rank (int): This worker's rank in the Cartesian communicator.
        dims (tuple): Topology height and width (number of blocks per axis).
        coords (tuple): This worker's (x, y) coordinate in the topology.
        neighbors (dict): Neighbour rank per Direction, None when absent.
        comm (MPI.Comm or None): The Cartesian communicator. None for a
            layout that was only planned.
    """

    height: int
    width: int
    size: int
    rank: int
    dims: Tuple[int, int]
    coords: Tuple[int, int]
    neighbors: Dict[Direction, Optional[int]]
    comm: Optional[MPI.Comm] = field(default=None, compare=False, repr=False)

    @property
    def block_height(self) -> int:
        return self.height // self.dims[0]

    @property
    def block_width(self) -> int:
        return self.width // self.dims[1]

    @property
    def offset(self) -> Tuple[int, int]:
        """Global coordinate of this worker's first owned cell."""
        return (
            self.coords[0] * self.block_height,
            self.coords[1] * self.block_width,
        )

    def has_neighbor(self, direction: Direction) -> bool:
        return self.neighbors[direction] is not None


def plan_dims(size: int) -> Tuple[int, int]:
    """Factors ``size`` into a 2D process grid that is as square as possible."""
    if size < 1:
        raise ValueError(f"Worker count must be positive, got {size}.")
    d0, d1 = MPI.Compute_dims(size, 2)
    return d0, d1


def validate_split(height: int, width: int, dims: Tuple[int, int]) -> None:
    """
    Checks that the grid divides evenly into the topology.

    Raises:
        ValueError: If the grid dimensions are not positive.
        ConfigurationError: If either dimension is not a multiple of the
            corresponding topology dimension.
    """
    if height < 1 or width < 1:
        raise ValueError(f"Grid dimensions must be positive, got {height}x{width}.")
    if height % dims[0] or width % dims[1]:
        raise ConfigurationError(height, width, dims)


def _null_to_none(rank: int) -> Optional[int]:
    return None if rank == MPI.PROC_NULL else rank


def create_topology(comm: MPI.Comm, height: int, width: int) -> Topology:
    """
    Creates the Cartesian topology for this worker.

    Every worker computes the same factorization, so an invalid split raises
    ConfigurationError on all of them; the caller is responsible for
    aborting the group.

    Args:
        comm (MPI.Comm): The communicator holding all workers.
        height (int): Global grid height.
        width (int): Global grid width.

    Returns:
        Topology: The topology as seen by the calling worker.
    """
    size = comm.Get_size()
    dims = plan_dims(size)
    validate_split(height, width, dims)

    cart_comm = comm.Create_cart(list(dims), periods=[False, False], reorder=True)

    # The rank may have been reordered by Create_cart
    rank = cart_comm.Get_rank()
    cx, cy = cart_comm.Get_coords(rank)

    top, bottom = cart_comm.Shift(0, 1)
    left, right = cart_comm.Shift(1, 1)
    neighbors = {
        Direction.LEFT: _null_to_none(left),
        Direction.TOP: _null_to_none(top),
        Direction.RIGHT: _null_to_none(right),
        Direction.BOTTOM: _null_to_none(bottom),
    }

    topology = Topology(
        height=height,
        width=width,
        size=size,
        rank=rank,
        dims=dims,
        coords=(cx, cy),
        neighbors=neighbors,
        comm=cart_comm,
    )
    logger.debug(
        f"Rank {rank}: coords {topology.coords} in {dims[0]}x{dims[1]} topology, "
        f"block {topology.block_height}x{topology.block_width}, "
        f"offset {topology.offset}"
    )
    return topology


def plan_topology(height: int, width: int, size: int, rank: int) -> Topology:
    """
    Computes the topology of one worker without a communicator.

    Ranks are laid out row-major over the topology, which is the ordering MPI
    uses for a Cartesian communicator that was not reordered.
    """
    dims = plan_dims(size)
    validate_split(height, width, dims)
    if not 0 <= rank < size:
        raise ValueError(f"Rank {rank} is outside [0, {size}).")

    cx, cy = divmod(rank, dims[1])

    def rank_at(x, y):
        if 0 <= x < dims[0] and 0 <= y < dims[1]:
            return x * dims[1] + y
        return None

    neighbors = {
        Direction.LEFT: rank_at(cx, cy - 1),
        Direction.TOP: rank_at(cx - 1, cy),
        Direction.RIGHT: rank_at(cx, cy + 1),
        Direction.BOTTOM: rank_at(cx + 1, cy),
    }
    return Topology(
        height=height,
        width=width,
        size=size,
        rank=rank,
        dims=dims,
        coords=(cx, cy),
        neighbors=neighbors,
    )


def describe_layout(height: int, width: int, size: int) -> List[Topology]:
    """Returns the planned topology of every worker, ordered by rank."""
    return [plan_topology(height, width, size, rank) for rank in range(size)]
