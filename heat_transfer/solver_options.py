from dataclasses import dataclass
from typing import Dict, Any

from heat_transfer.convergence import CRITERIA, DEFAULT_EPSILON, check_interval
from heat_transfer.stencil import DEFAULT_ALPHA


@dataclass
class SolverOptions:
    """A data class to hold all solver configuration options."""

    # Grid and run length
    height: int = 0
    width: int = 0
    steps: int = 0

    # Stencil
    alpha: float = DEFAULT_ALPHA

    # Convergence
    check_convergence: bool = True
    epsilon: float = DEFAULT_EPSILON
    convergence_criterion: str = "all"
    convergence_interval: int = 0  # 0 selects floor(sqrt(steps))

    # Output
    dump_grid: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.steps < 0:
            raise ValueError(f"steps must not be negative, got {self.steps}.")
        if self.convergence_interval < 0:
            raise ValueError(
                f"convergence_interval must not be negative, got {self.convergence_interval}."
            )
        if self.convergence_criterion not in CRITERIA:
            raise ValueError(
                f"Convergence criterion '{self.convergence_criterion}' is not supported."
            )

    @property
    def check_interval(self) -> int:
        if self.convergence_interval:
            return self.convergence_interval
        return check_interval(self.steps)

    @classmethod
    def from_config(cls, config: Dict[str, Any]):
        """Creates a SolverOptions instance from a nested configuration dictionary."""
        grid_config = config.get("grid", {})
        sim_config = config.get("simulation", {})
        solver_config = config.get("solver", {})
        convergence_config = config.get("convergence", {})
        output_config = config.get("output", {})

        # Create an instance with values from the config, falling back to defaults
        return cls(
            height=grid_config.get("height", 0),
            width=grid_config.get("width", 0),
            steps=sim_config.get("steps", 0),
            alpha=solver_config.get("alpha", DEFAULT_ALPHA),
            check_convergence=convergence_config.get("enabled", True),
            epsilon=convergence_config.get("epsilon", DEFAULT_EPSILON),
            convergence_criterion=convergence_config.get("criterion", "all"),
            convergence_interval=convergence_config.get("interval", 0),
            dump_grid=output_config.get("dump_grid", False),
            log_level=output_config.get("log_level", "INFO"),
        )
