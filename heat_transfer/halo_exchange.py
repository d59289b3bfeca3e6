"""
Non-blocking halo exchange between neighbouring blocks.
"""

from typing import Dict, Tuple

import numpy as np
from mpi4py import MPI

from heat_transfer.grid_block import GridBlock
from heat_transfer.topology import Direction, Topology


# Sends toward a direction carry that direction's tag; the neighbour receives
# them with the tag of the opposite direction.
TAG_BASE = 10
SEND_TAGS = {direction: TAG_BASE + direction for direction in Direction}
RECV_TAGS = {direction: TAG_BASE + direction.opposite for direction in Direction}


class HaloExchange:
    """
    Issues and completes the halo transfers of one worker.

    For each direction with a neighbour, exchange() posts one Isend of the
    block's boundary cells and one Irecv into the adjacent ghost cells of the
    current buffer. Columns are sent in place through a strided MPI datatype,
    rows are contiguous.

    The current buffer must not be written between exchange() and the
    matching wait().
    """

    def __init__(self, topology: Topology, comm: MPI.Comm | None = None):
        self.topology = topology
        self.comm = comm if comm is not None else topology.comm
        self.block_height = topology.block_height
        self.block_width = topology.block_width
        self.pending: Dict[Direction, Tuple[MPI.Request, MPI.Request]] = {}

        # One column of the padded block: block_height values, one row apart
        self._column_type = MPI.DOUBLE.Create_vector(
            self.block_height, 1, self.block_width + 2
        )
        self._column_type.Commit()

    def _offsets(self, direction: Direction) -> Tuple[int, int]:
        """Flat offsets of the first boundary cell sent and the first ghost cell received."""
        stride = self.block_width + 2
        if direction == Direction.LEFT:
            return stride + 1, stride
        if direction == Direction.TOP:
            return stride + 1, 1
        if direction == Direction.RIGHT:
            return stride + self.block_width, stride + self.block_width + 1
        # Direction.BOTTOM
        return (
            self.block_height * stride + 1,
            (self.block_height + 1) * stride + 1,
        )

    def _message(self, flat: np.ndarray, start: int, direction: Direction):
        if direction in (Direction.LEFT, Direction.RIGHT):
            return [flat[start:], 1, self._column_type]
        return [flat[start : start + self.block_width], self.block_width, MPI.DOUBLE]

    def exchange(self, grid: GridBlock) -> None:
        """Posts the send and receive of every direction that has a neighbour."""
        flat = grid.current.reshape(-1)
        for direction in Direction:
            neighbor = self.topology.neighbors[direction]
            if neighbor is None:
                continue
            if direction in self.pending:
                raise RuntimeError(
                    f"Rank {self.topology.rank}: exchange toward {direction.name} "
                    "issued before the previous one was waited on."
                )
            send_start, recv_start = self._offsets(direction)
            send_req = self.comm.Isend(
                self._message(flat, send_start, direction),
                dest=neighbor,
                tag=SEND_TAGS[direction],
            )
            recv_req = self.comm.Irecv(
                self._message(flat, recv_start, direction),
                source=neighbor,
                tag=RECV_TAGS[direction],
            )
            self.pending[direction] = (send_req, recv_req)

    def wait(self, direction: Direction) -> None:
        """Blocks until both transfers toward ``direction`` have completed."""
        requests = self.pending.pop(direction, None)
        if requests is None:
            return
        send_req, recv_req = requests
        send_req.Wait()
        recv_req.Wait()

    def wait_all(self) -> None:
        for direction in Direction:
            self.wait(direction)

    def free(self) -> None:
        """Releases the column datatype. Outstanding transfers are completed first."""
        self.wait_all()
        if self._column_type != MPI.DATATYPE_NULL:
            self._column_type.Free()
