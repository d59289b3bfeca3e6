import contextlib
import io
import tempfile
import unittest
import sys
import os
from unittest import mock

# Disable Numba JIT compilation for testing
os.environ["NUMBA_DISABLE_JIT"] = "1"

# Add the repository root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mpi4py import MPI

from heat_transfer.cli import build_parser, load_options, main, report_layout
from heat_transfer.simulation import Simulation
from heat_transfer.solver_options import SolverOptions


class TestCli(unittest.TestCase):
    """
    Test suite for the command-line entry point.
    """

    def test_missing_required_option_exits_with_usage(self):
        for argv in (["-w", "4", "-s", "1"], ["-h", "4", "-s", "1"], ["-h", "4", "-w", "4"]):
            stderr = io.StringIO()
            with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
                build_parser().parse_args(argv)
            self.assertNotEqual(ctx.exception.code, 0)
            self.assertIn("usage:", stderr.getvalue())

    def test_short_options(self):
        args = build_parser().parse_args(["-h", "16", "-w", "8", "-s", "100"])
        self.assertEqual((args.height, args.width, args.steps), (16, 8, 100))

    def test_command_line_overrides_config_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".yml", delete=False) as f:
            f.write("solver:\n  alpha: 0.2\nconvergence:\n  criterion: any\n  epsilon: 0.01\n")
            path = f.name
        try:
            args = build_parser().parse_args(
                ["-h", "8", "-w", "8", "-s", "10", "--config", path, "--epsilon", "0.5"]
            )
            options = load_options(args, MPI.COMM_SELF)
        finally:
            os.remove(path)

        self.assertEqual((options.height, options.width, options.steps), (8, 8, 10))
        self.assertEqual(options.alpha, 0.2)
        self.assertEqual(options.convergence_criterion, "any")
        self.assertEqual(options.epsilon, 0.5)

    def test_report_layout(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            status = report_layout(SolverOptions(height=8, width=8, steps=1), 4)
        self.assertEqual(status, 0)
        self.assertIn("2x2 topology", stdout.getvalue())
        self.assertIn("rank 3: coords (1, 1), offset (4, 4), no neighbor RIGHT, BOTTOM", stdout.getvalue())

        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(report_layout(SolverOptions(height=5, width=4, steps=1), 4), 1)

    @unittest.skipIf(MPI.COMM_WORLD.Get_size() > 1, "runs the full driver on one worker")
    def test_main_reports_elapsed_time(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            status = main(["-h", "4", "-w", "4", "-s", "2", "--dump-grid", "--log-level", "WARNING"])
        self.assertEqual(status, 0)
        output = stdout.getvalue()
        self.assertIn("Elapsed time:", output)
        self.assertNotIn("Convergence was reached", output)
        # Four grid rows precede the timing line
        lines = [line for line in output.splitlines() if line.strip()]
        self.assertEqual(len(lines), 5)
        self.assertTrue(lines[-1].startswith("Elapsed time:"))

    def test_invalid_dimensions_exit_with_usage(self):
        for argv in (
            ["-h", "-4", "-w", "4", "-s", "1"],
            ["-h", "4", "-w", "0", "-s", "1"],
            ["-h", "4", "-w", "4", "-s", "-1"],
            ["-h", "four", "-w", "4", "-s", "1"],
        ):
            stderr = io.StringIO()
            with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
                build_parser().parse_args(argv)
            self.assertEqual(ctx.exception.code, 2)
            self.assertIn("usage:", stderr.getvalue())
            self.assertNotIn("Traceback", stderr.getvalue())

    def test_zero_steps_are_accepted(self):
        args = build_parser().parse_args(["-h", "1", "-w", "1", "-s", "0"])
        self.assertEqual((args.height, args.width, args.steps), (1, 1, 0))

    @unittest.skipIf(MPI.COMM_WORLD.Get_size() > 1, "runs the full driver on one worker")
    def test_worker_time_is_reported_at_any_log_level(self):
        stdout = io.StringIO()
        stderr = io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            status = main(["-h", "4", "-w", "4", "-s", "2", "--log-level", "ERROR"])
        self.assertEqual(status, 0)
        self.assertRegex(stderr.getvalue(), r"worker0@.+, time: \d+\.\d{2}")
        self.assertNotIn("worker0@", stdout.getvalue())

    @unittest.skipIf(MPI.COMM_WORLD.Get_size() > 1, "runs the full driver on one worker")
    def test_resources_are_released_when_the_run_fails(self):
        with mock.patch.object(
            Simulation, "run", side_effect=RuntimeError("solver failed")
        ), mock.patch.object(
            Simulation, "close", autospec=True, side_effect=Simulation.close
        ) as close:
            with self.assertRaises(RuntimeError):
                main(["-h", "4", "-w", "4", "-s", "2", "--log-level", "WARNING"])
        close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
