import numba


# --- Cell update (JIT-compiled for performance) ---
@numba.njit(cache=True)
def update_cell(old, new, i, j, alpha):
    """
    Explicit 5-point diffusion update of cell (i, j).

    Reads only from ``old`` and writes only to ``new``.
    """
    center = old[i, j]
    new[i, j] = (
        center
        + alpha * (old[i - 1, j] + old[i + 1, j] - 2.0 * center)
        + alpha * (old[i, j - 1] + old[i, j + 1] - 2.0 * center)
    )


@numba.njit(cache=True)
def update_interior(old, new, block_height, block_width, alpha):
    """
    Updates every owned cell at least two cells away from the block edge.

    These cells never read ghost data, so the pass may run while the halo
    transfers are still in flight.
    """
    for i in range(2, block_height):
        for j in range(2, block_width):
            update_cell(old, new, i, j, alpha)


@numba.njit(cache=True)
def update_boundary(old, new, block_height, block_width, alpha):
    """
    Updates the one-cell-thick perimeter of the owned block.

    Must only run once the ghost rows and columns have been delivered.
    """
    # Top and bottom rows
    for j in range(1, block_width + 1):
        update_cell(old, new, 1, j, alpha)
        update_cell(old, new, block_height, j, alpha)

    # Left and right columns
    for i in range(1, block_height + 1):
        update_cell(old, new, i, 1, alpha)
        update_cell(old, new, i, block_width, alpha)
