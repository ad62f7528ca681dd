from __future__ import annotations

import json
from pathlib import Path

import pytest

from git_metrics.cli import _build_parser
from git_metrics.config import DEFAULT_OUTPUT, Options, load_config, resolve_options


def _resolve(argv: list[str], config: dict) -> Options:
    return resolve_options(_build_parser().parse_args(argv), config)


def test_defaults_without_flags_or_config() -> None:
    opts = _resolve([], {})
    assert opts == Options()
    assert opts.output == DEFAULT_OUTPUT == Path("metrics.svg")
    assert opts.strategy == "numstat"
    assert opts.rev == "HEAD"


def test_config_values_are_used() -> None:
    opts = _resolve(
        [],
        {
            "output": "docs/loc.svg",
            "title": "LOC",
            "strategy": "checkout",
            "include_merges": True,
            "exclude_path_prefixes": ["vendor"],
            "exclude_path_globs": ["*.lock", " "],
            "width": 1200,
            "height": 300,
        },
    )
    assert opts.output == Path("docs/loc.svg")
    assert opts.title == "LOC"
    assert opts.strategy == "checkout"
    assert opts.include_merges is True
    assert opts.exclude_path_prefixes == ("vendor",)
    assert opts.exclude_path_globs == ("*.lock",)
    assert (opts.width, opts.height) == (1200, 300)


def test_flags_override_config() -> None:
    opts = _resolve(
        ["--output", "out/chart.svg", "--strategy", "numstat", "--title", "Mine", "--repo", "/tmp/x"],
        {"output": "docs/loc.svg", "strategy": "checkout", "title": "LOC", "repo": "/elsewhere"},
    )
    assert opts.output == Path("out/chart.svg")
    assert opts.strategy == "numstat"
    assert opts.title == "Mine"
    assert opts.repo == Path("/tmp/x")


@pytest.mark.parametrize(
    "config",
    [
        {"strategy": "blame"},
        {"exclude_path_globs": "*.lock"},
        {"exclude_path_prefixes": [1, 2]},
        {"width": 0},
        {"height": "tall"},
        {"width": True},
    ],
)
def test_invalid_config_values_exit(config: dict) -> None:
    with pytest.raises(SystemExit):
        _resolve([], config)


def test_load_config_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.json") == {}


def test_load_config_reads_json(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(json.dumps({"output": "x.svg"}), encoding="utf-8")
    assert load_config(p) == {"output": "x.svg"}


def test_load_config_rejects_bad_json(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit):
        load_config(p)
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SystemExit):
        load_config(p)
