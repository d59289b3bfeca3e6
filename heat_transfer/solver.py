import logging
from typing import Tuple

from heat_transfer.convergence import ConvergenceEvaluator
from heat_transfer.grid_block import GridBlock
from heat_transfer.halo_exchange import HaloExchange
from heat_transfer.stencil import StencilUpdater
from heat_transfer.topology import Direction

logger = logging.getLogger(__name__)


def advance(grid: GridBlock, exchange: HaloExchange, updater: StencilUpdater) -> None:
    """
    Computes the next state of the block into its next buffer.

    The interior pass overlaps with the halo transfers; the boundary pass runs
    once every direction's ghost data has arrived. Buffers are not swapped.
    """
    exchange.exchange(grid)
    updater.interior_pass(grid)
    for direction in Direction:
        exchange.wait(direction)
    updater.boundary_pass(grid)


def solve(
    grid: GridBlock,
    exchange: HaloExchange,
    updater: StencilUpdater,
    evaluator: ConvergenceEvaluator,
    steps: int,
    check_interval: int,
    check_convergence: bool = True,
) -> Tuple[int, bool]:
    """
    Main solver loop.

    Runs up to ``steps`` iterations on ``grid``, starting from its current
    state, so a run can be continued by calling solve() again. Every
    ``check_interval`` iterations all workers agree on whether the field has
    converged and stop together if it has.

    Returns:
        tuple: Number of iterations performed and whether convergence was reached.
    """
    iterations = 0
    converged = False

    for step in range(steps):
        advance(grid, exchange, updater)

        if check_convergence and step % check_interval == 0:
            local_flag = evaluator.check_local(grid)
            converged = evaluator.reduce_global(local_flag)

        grid.swap()
        iterations = step + 1

        if converged:
            logger.debug(f"Global convergence reached at iteration {iterations}")
            break

    return iterations, converged
