"""
Command-line entry point of the distributed heat transfer solver.

Typical use::

    mpiexec -n 4 python main_solver.py -h 1024 -w 1024 -s 10000
"""

# --- Standard Library Imports ---
import os
import sys
import argparse
import dataclasses
import logging

# --- Third-Party Imports ---
import yaml
from mpi4py import MPI
import debugpy

# --- Local Application Imports ---
from heat_transfer.errors import ConfigurationError
from heat_transfer.output import format_block, format_field, gather_field
from heat_transfer.simulation import Simulation
from heat_transfer.solver_options import SolverOptions
from heat_transfer.topology import describe_layout


logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    # -h is the grid height, so help is only available as --help
    parser = argparse.ArgumentParser(
        prog="mpi_heat",
        description="HeatTransfer implementation in MPI",
        add_help=False,
    )
    parser.add_argument(
        "--help", action="help", help="Show this help message and exit."
    )
    parser.add_argument("-h", "--height", type=positive_int, required=True, help="Grid height")
    parser.add_argument("-w", "--width", type=positive_int, required=True, help="Grid width")
    parser.add_argument("-s", "--steps", type=non_negative_int, required=True, help="Time steps")
    parser.add_argument(
        "--config", type=str, default=None, help="Path to a YAML file with solver options."
    )
    parser.add_argument("--alpha", type=float, default=None, help="Diffusion coefficient.")
    parser.add_argument(
        "--epsilon", type=float, default=None, help="Convergence threshold per cell."
    )
    parser.add_argument(
        "--criterion",
        choices=["all", "any"],
        default=None,
        help="Whether all or any owned cell must fall under the threshold.",
    )
    parser.add_argument(
        "--no-convergence-check",
        action="store_true",
        help="Always run the full number of steps.",
    )
    parser.add_argument(
        "--dump-grid", action="store_true", help="Print the final global grid on rank 0."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the domain decomposition and exit without solving.",
    )
    parser.add_argument(
        "--mpi-debug", action="store_true", help="Enable MPI debugging with debugpy."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser


def load_options(args: argparse.Namespace, comm: MPI.Comm) -> SolverOptions:
    """
    Builds the solver options from the optional config file and the CLI.

    The file is read on rank 0 and broadcast; command-line values win.
    """
    config_dict = {}
    if comm.Get_rank() == 0 and args.config:
        logger.info(f"Loading configuration from {args.config}...")
        with open(args.config, "r") as f:
            config_dict = yaml.safe_load(f) or {}
    config_dict = comm.bcast(config_dict, root=0)

    options = SolverOptions.from_config(config_dict)
    overrides = {"height": args.height, "width": args.width, "steps": args.steps}
    if args.alpha is not None:
        overrides["alpha"] = args.alpha
    if args.epsilon is not None:
        overrides["epsilon"] = args.epsilon
    if args.criterion is not None:
        overrides["convergence_criterion"] = args.criterion
    if args.no_convergence_check:
        overrides["check_convergence"] = False
    if args.dump_grid:
        overrides["dump_grid"] = True
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return dataclasses.replace(options, **overrides)


def report_layout(options: SolverOptions, size: int) -> int:
    """Prints the planned decomposition for ``size`` workers."""
    try:
        layout = describe_layout(options.height, options.width, size)
    except ConfigurationError as exc:
        logger.error(str(exc))
        return 1

    dims = layout[0].dims
    print(
        f"Grid {options.height}x{options.width} over {size} workers "
        f"({dims[0]}x{dims[1]} topology, blocks of "
        f"{layout[0].block_height}x{layout[0].block_width})"
    )
    for topology in layout:
        absent = [d.name for d, n in topology.neighbors.items() if n is None]
        print(
            f"  rank {topology.rank}: coords {topology.coords}, "
            f"offset {topology.offset}, no neighbor {', '.join(absent) or '-'}"
        )
    return 0


def main(argv=None) -> int:
    """
    Main driver function to parse arguments and run the solver.
    """
    args = build_parser().parse_args(argv)

    # --- Initialize MPI ---
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()

    # --- Logger Setup ---
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    # --- Conditional MPI Debugging ---
    if args.mpi_debug:
        logger.info(f"Rank {rank}: PID {os.getpid()}")
        port = 5678 + rank
        debugpy.listen(("localhost", port))
        logger.info(f"Rank {rank}: Waiting for debugger on port {port}...")
        debugpy.wait_for_client()
        debugpy.breakpoint()
        logger.info(f"Rank {rank}: Debugger attached!")
        comm.Barrier()

    # --- Load Configuration and Setup Topology ---
    # The options are identical on every worker, so every worker fails the
    # same check; one of them reports it
    try:
        options = load_options(args, comm)
        logging.getLogger().setLevel(options.log_level.upper())

        if args.dry_run:
            status = report_layout(options, comm.Get_size()) if rank == 0 else 0
            return comm.bcast(status, root=0)

        simulation = Simulation(comm, options)
    except (ConfigurationError, ValueError) as exc:
        if rank == 0:
            logger.error(str(exc))
        comm.Barrier()
        comm.Abort(1)
        return 1

    # --- Run Simulation ---
    try:
        report = simulation.run()
        print(
            f"worker{simulation.rank}@{MPI.Get_processor_name()}, "
            f"time: {report.local_time:.2f}",
            file=sys.stderr,
            flush=True,
        )

        if options.dump_grid:
            logger.debug(format_block(simulation.grid, simulation.rank))
            field = gather_field(simulation.grid, simulation.topology, simulation.comm)
            if field is not None:
                print(format_field(field), flush=True)

        if simulation.rank == 0:
            if report.converged:
                print(f"Convergence was reached after {report.iterations} iterations!")
            print(f"\nElapsed time: {report.elapsed_time:.2f} sec", flush=True)
    finally:
        simulation.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
