#!/usr/bin/env python3
"""
Command line runner for luacsg scripts.

Usage:
    python -m luacsg run FILE.lua [--env NAME] [--sample X,Y,Z ...]
    python -m luacsg check FILE.lua

Examples:
    # Evaluate a script, show its bounding box and sample the field
    python -m luacsg run examples/capped_cone.lua --sample 0,0,0 --sample 3,0,2

    # Only report whether the script evaluates
    python -m luacsg check examples/capped_cone.lua
"""

import argparse
import sys
from pathlib import Path
from typing import Tuple

from .config import Settings, configure_logging
from .console import channel
from .sandbox import evaluate


def parse_point(text: str) -> Tuple[float, float, float]:
    """Parse ``'x,y,z'`` into a point."""
    parts = [p.strip() for p in text.split(',')]
    if len(parts) != 3:
        raise ValueError(f"Invalid point: {text} (expected x,y,z)")
    return (float(parts[0]), float(parts[1]), float(parts[2]))


def _evaluate_file(args):
    source_path = Path(args.file)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None, []

    sender, receiver = channel()
    try:
        settings = Settings()
        result = evaluate(source_path.read_text(), console=sender,
                          env_name=getattr(args, 'env', None), settings=settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None, []
    return result, receiver.drain()


def cmd_check(args):
    """Evaluate a script and report success or the error."""
    result, messages = _evaluate_file(args)
    if result is None:
        return 1
    for message in messages:
        print(f"  {message}")
    if not result.success:
        print(f"Error: {result.error_message}", file=sys.stderr)
        return 1
    print(f"OK: {Path(args.file).name}")
    return 0


def cmd_run(args):
    """Evaluate a script and describe the object it built."""
    try:
        samples = [parse_point(s) for s in args.sample or []]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result, messages = _evaluate_file(args)
    if result is None:
        return 1

    if result.output:
        print(result.output, end='')
    for message in messages:
        print(f"console: {message}")

    if not result.success:
        print(f"Error: {result.error_message}", file=sys.stderr)
        return 1

    root = result.root
    if root is None:
        print("Result: no object built")
        return 0

    box = root.bbox()
    print(f"Result: {type(root).__name__}")
    print(f"Bounding box: min={box.min} max={box.max}")
    for p in samples:
        print(f"f({p[0]:g}, {p[1]:g}, {p[2]:g}) = {root.evaluate(p):.6g}")
    return 0


def main(argv=None):
    configure_logging()

    parser = argparse.ArgumentParser(
        prog='python -m luacsg',
        description='Evaluate Lua geometry scripts',
    )
    subparsers = parser.add_subparsers(dest='action', required=True)

    check_parser = subparsers.add_parser('check', help='Check that a script evaluates')
    check_parser.add_argument('file', help='Lua script')

    run_parser = subparsers.add_parser('run', help='Evaluate a script')
    run_parser.add_argument('file', help='Lua script')
    run_parser.add_argument('--env', metavar='NAME',
                            help='Name of the script environment table')
    run_parser.add_argument('-s', '--sample', action='append', metavar='X,Y,Z',
                            help='Point at which to evaluate the field (can be repeated)')

    args = parser.parse_args(argv)

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'run':
        return cmd_run(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
