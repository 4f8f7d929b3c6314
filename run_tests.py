#!/usr/bin/env python
"""Test runner for Matalino Router."""

import sys
import subprocess
import argparse

# Unit test module per routing component
COMPONENTS = {
    "analyzer": "tests/unit/test_analyzer.py",
    "validation": "tests/unit/test_validation.py",
    "registry": "tests/unit/test_registry.py",
    "policy": "tests/unit/test_policy.py",
    "providers": "tests/unit/test_providers.py",
    "dispatcher": "tests/unit/test_dispatcher.py",
    "ledger": "tests/unit/test_gate_ledger.py",
    "store": "tests/unit/test_store.py",
    "logging": "tests/unit/test_logging.py",
}


def main():
    parser = argparse.ArgumentParser(description="Run Matalino Router tests")
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--unit", action="store_true", help="Run unit tests only")
    scope.add_argument("--integration", action="store_true", help="Run the end-to-end routing tests only")
    scope.add_argument("--component", choices=sorted(COMPONENTS), action="append",
                       help="Run one component's unit tests (repeatable)")
    parser.add_argument("--coverage", action="store_true", help="Report coverage of matalino_router")
    parser.add_argument("--trail", action="store_true",
                        help="Show the routing log trail (DEBUG) for each test")
    parser.add_argument("--failfast", "-x", action="store_true", help="Stop at the first failure")
    parser.add_argument("-k", dest="keyword", help="Only run tests matching this expression")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args()

    cmd = ["pytest"]
    if args.component:
        cmd.extend(COMPONENTS[name] for name in args.component)
    elif args.unit:
        cmd.extend(["-m", "unit"])
    elif args.integration:
        cmd.extend(["-m", "integration"])

    if args.keyword:
        cmd.extend(["-k", args.keyword])
    if args.failfast:
        cmd.append("-x")
    if args.verbose:
        cmd.append("-vv")
    if args.trail:
        cmd.extend(["-o", "log_cli=true", "--log-cli-level=DEBUG"])
    if args.coverage:
        cmd.extend(["--cov=matalino_router", "--cov-report=term-missing"])

    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, cwd=".").returncode


if __name__ == "__main__":
    sys.exit(main())
