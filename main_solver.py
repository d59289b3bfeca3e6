"""
Main driver script for the distributed 2D heat transfer solver.

This script runs the simulation in a parallel environment using MPI.
The process includes:
1.  Parsing the command-line arguments and the optional configuration file.
2.  Creating the Cartesian process topology and each worker's grid block.
3.  Iterating the diffusion stencil with overlapped halo exchanges.
4.  Reducing the timings and reporting them on the root process.

Usage:
    mpiexec -n 4 python main_solver.py -h 1024 -w 1024 -s 10000
"""

import sys

from heat_transfer.cli import main


if __name__ == "__main__":
    sys.exit(main())
