#!/usr/bin/env python3
"""Test runner script for ssh-kim."""

import subprocess
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).parent.parent
TEST_DIR = PROJECT_ROOT / "tests"

# Run order for "all"
SUITES = ("unit", "functional", "integration")


def run_pytest(test_paths: List[str], additional_args: Optional[List[str]] = None) -> int:
    """Run pytest with coverage over the given paths."""
    cmd = [
        "pytest",
        "-v",
        "--cov=ssh_kim",
        "--cov-report=term-missing",
        "--cov-report=html",
    ] + test_paths + (additional_args or [])

    print(f"Running: {' '.join(cmd)}")
    print("-" * 80)

    try:
        return subprocess.run(cmd, check=False, cwd=PROJECT_ROOT).returncode
    except FileNotFoundError:
        print("Error: pytest not found. Install the test extra:")
        print("  pip install -e .[test]")
        return 1


def print_help() -> None:
    print("ssh-kim Test Runner")
    print("=" * 40)
    print()
    print("Usage:")
    print("  python tests/run_tests.py [all|unit|functional|integration] [pytest args...]")
    print()
    print("Examples:")
    print("  python tests/run_tests.py")
    print("  python tests/run_tests.py unit -k record_store")
    print("  python tests/run_tests.py functional --tb=short")


def main() -> int:
    """Run the suite named on the command line (default: all)."""
    command = sys.argv[1].lower() if len(sys.argv) > 1 else "all"
    additional_args = sys.argv[2:]

    if command in ("help", "-h", "--help"):
        print_help()
        return 0

    if command == "all":
        failed = []
        for suite in SUITES:
            print(f"\n{'=' * 20} Running {suite.upper()} tests {'=' * 20}")
            if run_pytest([str(TEST_DIR / suite)], additional_args) != 0:
                failed.append(suite)

        if failed:
            print(f"\nFailed suites: {', '.join(failed)}")
            return 1
        print(f"\n{'=' * 20} All test types completed successfully {'=' * 20}")
        return 0

    if command in SUITES:
        return run_pytest([str(TEST_DIR / command)], additional_args)

    print(f"Error: Unknown command '{command}'")
    print("Use 'python tests/run_tests.py help' for usage information")
    return 1


if __name__ == "__main__":
    sys.exit(main())
