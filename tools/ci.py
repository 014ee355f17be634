#!/usr/bin/env python3
# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the GraphDoc checks locally: format, lint, type check, tests with coverage, docs, and build."""

import pathlib
import subprocess
import sys
import time

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: list[tuple[str, list[str]]] = [
    ("Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/"]),
    ("Lint", ["uv", "run", "ruff", "check", "src/", "tests/"]),
    ("Type check", ["uv", "run", "ty", "check", "src/"]),
    ("Tests", ["uv", "run", "pytest", "--cov=graphdoc", "--cov-report=term-missing"]),
    ("Docs", ["uv", "run", "sphinx-build", "-q", "-b", "html", "docs/sphinx", "build/docs"]),
    ("Build", ["uv", "build"]),
]


def main(argv: list[str] | None = None) -> int:
    """Run the selected CI steps (all of them by default) and print a summary."""
    selected = _select_steps(argv if argv is not None else sys.argv[1:])
    results: list[tuple[str, bool, float]] = []

    for name, cmd in selected:
        _banner(name)
        start = time.monotonic()
        proc = subprocess.run(cmd, cwd=_repo_root())
        results.append((name, proc.returncode == 0, time.monotonic() - start))

    _banner("  Summary")
    for name, passed, elapsed in results:
        color = chalk.green if passed else chalk.red
        status = "PASS" if passed else "FAIL"
        print(color(f"  {status}  {name} ({elapsed:.1f}s)"))

    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################


def _select_steps(names: list[str]) -> list[tuple[str, list[str]]]:
    if not names:
        return STEPS
    wanted = {name.lower() for name in names}
    return [step for step in STEPS if step[0].lower() in wanted]


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(title))
    print(sep)


def _repo_root() -> str:
    return str(pathlib.Path(__file__).parent.parent)


if __name__ == "__main__":
    sys.exit(main())
