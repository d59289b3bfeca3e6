import math

import numba
from mpi4py import MPI

from heat_transfer.grid_block import GridBlock

DEFAULT_EPSILON = 1.0e-3
CRITERIA = ("all", "any")


@numba.njit(cache=True)
def _all_cells_converged(current, nxt, block_height, block_width, epsilon):
    for i in range(1, block_height + 1):
        for j in range(1, block_width + 1):
            if abs(current[i, j] - nxt[i, j]) >= epsilon:
                return False
    return True


@numba.njit(cache=True)
def _any_cell_converged(current, nxt, block_height, block_width, epsilon):
    for i in range(1, block_height + 1):
        for j in range(1, block_width + 1):
            if abs(current[i, j] - nxt[i, j]) < epsilon:
                return True
    return False


def check_interval(steps: int) -> int:
    """Iterations between two convergence checks: floor(sqrt(steps)), at least 1."""
    return max(1, math.isqrt(max(steps, 0)))


class ConvergenceEvaluator:
    """
    Decides whether the simulation has converged.

    The local check compares the owned cells of the current and next buffers
    of a block, i.e. the state before and after the iteration that just ran.

    Args:
        comm (MPI.Comm): Communicator over which local flags are reduced.
        epsilon (float): Largest change of a cell still considered converged.
        criterion (str): ``"all"`` requires every owned cell to change by less
            than epsilon. ``"any"`` is satisfied by the first such cell.
    """

    def __init__(self, comm: MPI.Comm, epsilon: float = DEFAULT_EPSILON, criterion: str = "all"):
        if criterion not in CRITERIA:
            raise ValueError(
                f"Convergence criterion '{criterion}' is not supported. "
                f"Choose one of {CRITERIA}."
            )
        if epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {epsilon}.")
        self.comm = comm
        self.epsilon = epsilon
        self.criterion = criterion

    def check_local(self, grid: GridBlock) -> bool:
        if self.criterion == "all":
            kernel = _all_cells_converged
        else:
            kernel = _any_cell_converged
        return bool(
            kernel(
                grid.current,
                grid.next,
                grid.block_height,
                grid.block_width,
                self.epsilon,
            )
        )

    def reduce_global(self, local_flag: bool) -> bool:
        """Logical AND of every worker's flag, as a MIN over 0/1."""
        global_flag = self.comm.allreduce(int(local_flag), op=MPI.MIN)
        return bool(global_flag)
