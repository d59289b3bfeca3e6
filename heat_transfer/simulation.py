"""
Defines the main Simulation class to orchestrate the solver setup and execution.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mpi4py import MPI

from heat_transfer.convergence import ConvergenceEvaluator
from heat_transfer.grid_block import GridBlock
from heat_transfer.halo_exchange import HaloExchange
from heat_transfer.solver import solve
from heat_transfer.solver_options import SolverOptions
from heat_transfer.stencil import StencilUpdater
from heat_transfer.topology import Topology, create_topology

logger = logging.getLogger(__name__)


class SimulationState(Enum):
    INIT = "init"
    RUNNING = "running"
    CONVERGED = "converged"
    STEP_LIMIT_REACHED = "step_limit_reached"
    DONE = "done"


@dataclass
class RunReport:
    """
    Outcome of a run as seen by one worker.

    Attributes:
        iterations (int): Iterations performed.
        converged (bool): Whether the run stopped on global convergence.
        local_time (float): This worker's wall-clock time for the loop.
        elapsed_time (float or None): Slowest worker's time, on the root only.
    """

    iterations: int
    converged: bool
    local_time: float
    elapsed_time: Optional[float] = None


class Simulation:
    """
    Orchestrates the setup, execution, and teardown of a heat transfer run.

    Creating a Simulation builds the topology, which raises ConfigurationError
    on every worker when the grid cannot be split evenly.
    """

    def __init__(self, comm: MPI.Comm, options: SolverOptions):
        self.options = options
        self.topology: Topology = create_topology(comm, options.height, options.width)
        self.comm = self.topology.comm
        self.rank = self.topology.rank
        self.size = self.topology.size

        self.grid = GridBlock.from_topology(self.topology)
        self.exchange = HaloExchange(self.topology)
        self.updater = StencilUpdater(options.alpha)
        self.evaluator = ConvergenceEvaluator(
            self.comm, options.epsilon, options.convergence_criterion
        )
        self.state = SimulationState.INIT

    def warm_up(self) -> None:
        """
        Compiles the stencil and convergence kernels on a scratch block.

        The kernels are typed by their arguments only, so a small block of the
        same dtype triggers the same compilation the real grid would. The
        simulation grid is left untouched.
        """
        scratch = GridBlock(3, 3)
        self.updater.sweep(scratch)
        self.evaluator.check_local(scratch)

    def run(self) -> RunReport:
        """
        Runs the simulation and reduces the timings.

        Returns:
            RunReport: The run outcome; ``elapsed_time`` is set on rank 0.
        """
        if self.state is not SimulationState.INIT:
            raise RuntimeError(f"Simulation cannot run from state {self.state.name}.")

        # Keep JIT compilation out of the timed loop
        self.warm_up()

        # Align the start of the timers across workers
        self.comm.Barrier()
        start_time = MPI.Wtime()

        self.state = SimulationState.RUNNING
        logger.info(f"Rank {self.rank}: Starting the solver...")
        iterations, converged = solve(
            self.grid,
            self.exchange,
            self.updater,
            self.evaluator,
            self.options.steps,
            self.options.check_interval,
            check_convergence=self.options.check_convergence,
        )
        if converged:
            self.state = SimulationState.CONVERGED
        else:
            self.state = SimulationState.STEP_LIMIT_REACHED

        local_time = MPI.Wtime() - start_time
        logger.info(f"Rank {self.rank}: Solver finished after {iterations} iterations.")

        elapsed_time = self.comm.reduce(local_time, op=MPI.MAX, root=0)
        self.state = SimulationState.DONE

        return RunReport(
            iterations=iterations,
            converged=converged,
            local_time=local_time,
            elapsed_time=elapsed_time,
        )

    def close(self) -> None:
        """Releases the MPI resources held by the simulation."""
        self.exchange.free()
        self.comm.Free()
