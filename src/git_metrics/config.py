from __future__ import annotations

import argparse
import dataclasses
import json
from pathlib import Path

from .history import STRATEGIES
from .render import DEFAULT_HEIGHT, DEFAULT_TITLE, DEFAULT_WIDTH

DEFAULT_OUTPUT = Path("metrics.svg")


@dataclasses.dataclass(frozen=True)
class Options:
    repo: Path = Path(".")
    output: Path = DEFAULT_OUTPUT
    title: str = DEFAULT_TITLE
    strategy: str = "numstat"
    rev: str = "HEAD"
    include_merges: bool = False
    exclude_path_prefixes: tuple[str, ...] = ()
    exclude_path_globs: tuple[str, ...] = ()
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT


def load_config(config_path: Path | None) -> dict:
    if config_path is None or not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SystemExit(f"Invalid JSON in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise SystemExit(f"{config_path} must contain a JSON object")
    return data


def _str_list(config: dict, key: str) -> tuple[str, ...]:
    value = config.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SystemExit(f"config `{key}` must be a list of strings")
    return tuple(v for v in value if v.strip())


def _positive_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SystemExit(f"`{key}` must be a positive integer, got: {value!r}")
    return value


def resolve_options(args: argparse.Namespace, config: dict) -> Options:
    """Merge command-line flags over config.json values over built-in defaults."""

    def pick(flag: object, key: str, default: object) -> object:
        if flag is not None:
            return flag
        return config.get(key, default)

    strategy = str(pick(args.strategy, "strategy", "numstat"))
    if strategy not in STRATEGIES:
        raise SystemExit(f"Unknown strategy {strategy!r} (expected one of: {', '.join(sorted(STRATEGIES))})")

    include_merges = bool(args.include_merges) or bool(config.get("include_merges", False))

    return Options(
        repo=Path(args.repo) if args.repo is not None else Path(str(config.get("repo", "."))),
        output=Path(str(pick(args.output, "output", DEFAULT_OUTPUT))),
        title=str(pick(args.title, "title", DEFAULT_TITLE)),
        strategy=strategy,
        rev=str(pick(args.rev, "rev", "HEAD")) or "HEAD",
        include_merges=include_merges,
        exclude_path_prefixes=_str_list(config, "exclude_path_prefixes"),
        exclude_path_globs=_str_list(config, "exclude_path_globs"),
        width=_positive_int(config.get("width", DEFAULT_WIDTH), "width"),
        height=_positive_int(config.get("height", DEFAULT_HEIGHT), "height"),
    )
