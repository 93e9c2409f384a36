"""``perch routes`` — print the handled paths.

The output is sorted and stable, so it can be checked into a repository
and diffed to spot API surface changes between builds.
"""

import argparse
import sys

from perch.cli._resolve import resolve_app


def run_routes(args: argparse.Namespace) -> None:
    """Print one ``"VERB /path"`` line per handled route."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    paths = app.handled_paths(with_base_path=args.with_base_path)
    if not paths:
        print("No routes registered.", file=sys.stderr)
        raise SystemExit(1)
    print(paths)
