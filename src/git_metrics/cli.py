from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config, resolve_options
from .git import GitError
from .history import STRATEGIES
from .run import run_metrics


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-metrics",
        description="Chart a repository's line count over its commit history as an SVG.",
    )
    parser.add_argument("--output", "-o", type=Path, default=None, help="Output SVG path (default: metrics.svg).")
    parser.add_argument("--repo", type=Path, default=None, help="Repository to read (default: current directory).")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file (not read unless given).")
    parser.add_argument(
        "--strategy",
        choices=sorted(STRATEGIES),
        default=None,
        help="numstat: sum per-commit diff stats (default). checkout: count every tracked line at each commit (slow).",
    )
    parser.add_argument("--rev", type=str, default=None, help="Revision whose history is charted (default: HEAD).")
    parser.add_argument("--title", type=str, default=None, help="Chart title.")
    parser.add_argument("--include-merges", action="store_true", help="Include merge commits.")
    return parser


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _build_parser().parse_args(argv)
    options = resolve_options(args, load_config(args.config))
    try:
        return run_metrics(options)
    except GitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
