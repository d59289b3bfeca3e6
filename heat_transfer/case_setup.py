"""
This module defines the initial condition of the heat transfer problem.

The initial temperature field is a closed-form function of the global cell
coordinate, so each worker can seed its own block independently and the
assembled blocks reproduce the single-process field exactly.
"""

from typing import Tuple
import numpy as np


class HeatTransferCase:
    """
    Represents the default heat transfer case.

    The field is the product of two parabolas that vanish one cell outside the
    grid, ``(i+1)(H-i)(j+1)(W-j)``, hottest in the middle of the domain.
    """

    @staticmethod
    def initial_value(i, j, height: int, width: int):
        """
        Evaluates the initial temperature at global cell coordinate (i, j).

        Works on scalars as well as on broadcastable numpy arrays.
        """
        return (i + 1) * (height - i) * (j + 1) * (width - j)

    @staticmethod
    def setup_case(
        block_shape: Tuple[int, int],
        offset: Tuple[int, int],
        global_shape: Tuple[int, int],
    ) -> np.ndarray:
        """
        Computes the initial temperature of one block of the global grid.

        Args:
            block_shape (tuple): Number of owned rows and columns of the block.
            offset (tuple): Global coordinate of the block's first owned cell.
            global_shape (tuple): Global grid height and width.

        Returns:
            np.ndarray: Array of shape ``block_shape`` with the initial values.
        """
        rows = np.arange(block_shape[0], dtype=np.float64) + offset[0]
        cols = np.arange(block_shape[1], dtype=np.float64) + offset[1]
        gi, gj = np.meshgrid(rows, cols, indexing="ij")
        return HeatTransferCase.initial_value(gi, gj, *global_shape)
