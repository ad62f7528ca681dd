from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional


class GitError(RuntimeError):
    pass


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except FileNotFoundError as e:
        raise GitError(f"git executable not found: {e}") from e
    return proc.returncode, proc.stdout, proc.stderr


def check_git(args: list[str], cwd: Path, timeout_s: int = 300) -> str:
    code, out, err = run_git(args, cwd=cwd, timeout_s=timeout_s)
    if code != 0:
        raise GitError(f"git {' '.join(args)} exited {code}: {err.strip()[:500]}")
    return out


def get_repo_toplevel(candidate: Path) -> Optional[Path]:
    if not candidate.is_dir():
        return None
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    if code != 0:
        return None
    try:
        return Path(out.strip()).resolve()
    except (OSError, ValueError):
        return None


def require_repo(candidate: Path) -> Path:
    top = get_repo_toplevel(candidate)
    if top is None:
        raise GitError(f"not a git repository: {candidate}")
    return top


def has_commits(repo: Path, rev: str = "HEAD") -> bool:
    code, _, _ = run_git(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=repo)
    return code == 0


def list_commits(repo: Path, rev: str = "HEAD", include_merges: bool = False) -> list[tuple[str, str]]:
    """Return ``[(sha, committer_iso), ...]`` oldest first."""
    cmd = ["log", "--reverse", "--date=iso-strict", "--format=%H\t%cI", rev, "--"]
    if not include_merges:
        cmd.insert(1, "--no-merges")
    out = check_git(cmd, cwd=repo)
    commits: list[tuple[str, str]] = []
    for line in out.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split("\t", 1)
        if len(parts) != 2:
            continue
        commits.append((parts[0], parts[1]))
    return commits


def list_tracked_files(worktree: Path) -> list[str]:
    out = check_git(["ls-files", "-z"], cwd=worktree)
    return [p for p in out.split("\0") if p]
