#!/usr/bin/env python3
"""Development scripts for the Showtime booking service."""

import subprocess
import sys


def start():
    """Start the development server."""
    subprocess.run([
        "uvicorn",
        "showtime_booking.main:app",
        "--host", "0.0.0.0",
        "--port", "3000",
        "--reload"
    ])


def lint():
    """Run formatting check and type checking."""
    subprocess.run(["black", "--check", "showtime_booking/", "tests/"])
    subprocess.run(["mypy", "showtime_booking/"])


def format_code():
    """Format code with black."""
    subprocess.run(["black", "showtime_booking/", "tests/"])


def test():
    """Run the test suite."""
    sys.exit(subprocess.run(["pytest", "tests/"]).returncode)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts.py <command>")
        print("Commands: start, lint, format-code, test")
        sys.exit(1)

    command = sys.argv[1].replace("-", "_")
    if hasattr(sys.modules[__name__], command):
        getattr(sys.modules[__name__], command)()
    else:
        print(f"Unknown command: {sys.argv[1]}")
        sys.exit(1)
