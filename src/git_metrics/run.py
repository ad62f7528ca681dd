from __future__ import annotations

from .config import Options
from .git import require_repo
from .history import read_history
from .metrics import accumulate, summarize
from .render import fmt_int, render_svg, write_svg


def run_metrics(options: Options) -> int:
    repo = require_repo(options.repo)
    print(f"Reading history of {repo} ({options.strategy}, rev={options.rev})...")

    stats = read_history(
        repo,
        options.strategy,
        rev=options.rev,
        include_merges=options.include_merges,
        exclude_path_prefixes=list(options.exclude_path_prefixes),
        exclude_path_globs=list(options.exclude_path_globs),
    )
    points = accumulate(stats)

    markup = render_svg(points, title=options.title, width=options.width, height=options.height)
    write_svg(options.output, markup)

    s = summarize(points)
    if s.points:
        span = f"{s.first:%Y-%m-%d}..{s.last:%Y-%m-%d}"
        print(
            f"Wrote {s.points} points ({span}) to {options.output} "
            f"(final total: {fmt_int(s.final_total)}, +{fmt_int(s.insertions)} / -{fmt_int(s.deletions)})"
        )
    else:
        print(f"Wrote an empty chart to {options.output}")
    return 0
