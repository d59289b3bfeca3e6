"""
Exception types raised by the heat transfer solver.
"""


class HeatTransferError(Exception):
    """Base class for all solver errors."""


class ConfigurationError(HeatTransferError):
    """
    Raised when the global grid cannot be split evenly over the process topology.

    The condition is evaluated identically on every worker, so every worker
    raises it and the run is aborted as a whole.
    """

    def __init__(self, height: int, width: int, dims):
        self.height = height
        self.width = width
        self.dims = tuple(dims)
        super().__init__(
            f"Incompatible values for height, width and workers. "
            f"Tried to split a {height}x{width} grid into a "
            f"{self.dims[0]}x{self.dims[1]} topology"
        )
