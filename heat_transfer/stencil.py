"""
Applies the diffusion stencil to a grid block in two passes.
"""

from heat_transfer.grid_block import GridBlock
from heat_transfer.stencil_kernels import update_boundary, update_interior

DEFAULT_ALPHA = 0.1
# Stability limit of the explicit 2D scheme
MAX_STABLE_ALPHA = 0.25


class StencilUpdater:
    """
    Jacobi-style stencil updater.

    Both passes read the current buffer of the grid and write its next
    buffer; the buffers are swapped by the caller once both have run.
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA):
        if not 0.0 < alpha <= MAX_STABLE_ALPHA:
            raise ValueError(
                f"alpha={alpha} is outside the stable range (0, {MAX_STABLE_ALPHA}]."
            )
        self.alpha = alpha

    def interior_pass(self, grid: GridBlock) -> None:
        update_interior(
            grid.current, grid.next, grid.block_height, grid.block_width, self.alpha
        )

    def boundary_pass(self, grid: GridBlock) -> None:
        update_boundary(
            grid.current, grid.next, grid.block_height, grid.block_width, self.alpha
        )

    def sweep(self, grid: GridBlock) -> None:
        """Runs both passes back to back, for a block that needs no halo data."""
        self.interior_pass(grid)
        self.boundary_pass(grid)
