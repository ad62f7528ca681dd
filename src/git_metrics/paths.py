from __future__ import annotations

import fnmatch


def should_exclude_path(path: str, exclude_prefixes: list[str], exclude_globs: list[str]) -> bool:
    p = path.replace("\\", "/").removeprefix("./")
    for pref in exclude_prefixes:
        pr = (pref or "").replace("\\", "/").removeprefix("./")
        if not pr:
            continue
        if not pr.endswith("/"):
            pr = pr + "/"
        if p.startswith(pr) or f"/{pr}" in p:
            return True
    for pat in exclude_globs:
        if pat and fnmatch.fnmatch(p, pat):
            return True
    return False


def normalize_numstat_path(path: str) -> str:
    p = path.strip()
    # `git log --numstat` renders renames as src/{old => new}/file.py or old.py => new.py
    if " => " not in p:
        return p
    if "{" in p and "}" in p:
        head, rest = p.split("{", 1)
        inner, tail = rest.split("}", 1)
        new = inner.split(" => ", 1)[-1]
        p = f"{head}{new}{tail}".replace("//", "/")
    else:
        p = p.split(" => ")[-1]
    return p.strip()
