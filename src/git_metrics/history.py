from __future__ import annotations

import contextlib
import datetime as dt
import subprocess
import sys
import tempfile
import threading
from pathlib import Path
from typing import Iterator

from .git import GitError, check_git, has_commits, list_commits, list_tracked_files, run_git
from .models import CommitStat
from .paths import normalize_numstat_path, should_exclude_path

COMMIT_MARKER = "@@@"


def warn(msg: str) -> None:
    print(f"Warning: {msg}", file=sys.stderr)


def parse_commit_iso(commit_iso: str) -> dt.datetime | None:
    s = (commit_iso or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def _ensure_history(repo: Path, rev: str) -> bool:
    if has_commits(repo, rev):
        return True
    if rev == "HEAD":
        warn(f"no commits in {repo}; the series will be empty")
        return False
    raise GitError(f"unknown revision: {rev}")


def iter_numstat_commits(
    repo: Path,
    *,
    rev: str = "HEAD",
    include_merges: bool = False,
    exclude_path_prefixes: list[str] | None = None,
    exclude_path_globs: list[str] | None = None,
) -> Iterator[CommitStat]:
    """Yield one CommitStat per commit, oldest first, from a streaming ``git log --numstat``.

    Commits whose header or numstat rows cannot be parsed are skipped with a warning.
    Failing to start git is fatal; a non-zero exit after streaming is only warned about.
    """
    if not _ensure_history(repo, rev):
        return

    prefixes = list(exclude_path_prefixes or [])
    globs = list(exclude_path_globs or [])

    cmd = [
        "git",
        "-c",
        "core.quotePath=false",
        "log",
        "--reverse",
        "--date=iso-strict",
        # Committer dates follow log order; author dates can run backwards after a rebase.
        f"--pretty=format:{COMMIT_MARKER}%H\t%cI",
        "--numstat",
        rev,
        "--",
    ]
    if not include_merges:
        cmd.insert(cmd.index("log") + 1, "--no-merges")

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(repo),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise GitError(f"failed to start git log: {e}") from e

    stderr_chunks: list[str] = []
    stderr_chars = 0
    max_stderr_chars = 50_000

    def drain_stderr() -> None:
        nonlocal stderr_chars
        if proc.stderr is None:
            return
        while True:
            chunk = proc.stderr.read(8192)
            if not chunk:
                return
            if stderr_chars >= max_stderr_chars:
                continue
            take = chunk[: max_stderr_chars - stderr_chars]
            stderr_chunks.append(take)
            stderr_chars += len(take)

    stderr_thread: threading.Thread | None = None
    if proc.stderr is not None:
        stderr_thread = threading.Thread(target=drain_stderr, daemon=True)
        stderr_thread.start()

    current_sha = ""
    current_ts: dt.datetime | None = None
    current_insertions = 0
    current_deletions = 0
    current_files = 0
    current_bad = ""

    def finish_commit() -> CommitStat | None:
        if not current_sha:
            return None
        if current_bad:
            warn(f"skipping commit {current_sha[:12]}: {current_bad}")
            return None
        assert current_ts is not None
        return CommitStat(
            sha=current_sha,
            timestamp=current_ts,
            insertions=current_insertions,
            deletions=current_deletions,
            files_touched=current_files,
        )

    exhausted = False
    try:
        assert proc.stdout is not None
        for raw_line in proc.stdout:
            line = raw_line.rstrip("\n")
            if not line.strip():
                continue
            if line.startswith(COMMIT_MARKER):
                done = finish_commit()
                if done is not None:
                    yield done
                parts = line[len(COMMIT_MARKER) :].split("\t", 1)
                current_sha = parts[0].strip()
                current_ts = parse_commit_iso(parts[1]) if len(parts) > 1 else None
                current_insertions = 0
                current_deletions = 0
                current_files = 0
                current_bad = "" if current_ts is not None else f"unparseable commit header {line!r}"
                if not current_sha:
                    warn(f"ignoring commit header without a hash: {line!r}")
                continue

            if not current_sha:
                warn(f"ignoring numstat row outside of a commit: {line!r}")
                continue

            parts = line.split("\t", 2)
            if len(parts) < 3:
                current_bad = f"unparseable numstat row {line!r}"
                continue
            added_s, deleted_s, raw_path = parts
            if added_s == "-" and deleted_s == "-":
                added = 0
                deleted = 0
            else:
                try:
                    added = int(added_s)
                    deleted = int(deleted_s)
                except ValueError:
                    current_bad = f"unparseable numstat row {line!r}"
                    continue
                if added < 0 or deleted < 0:
                    current_bad = f"negative numstat counts {line!r}"
                    continue

            file_path = normalize_numstat_path(raw_path)
            if file_path and should_exclude_path(file_path, prefixes, globs):
                continue

            current_insertions += added
            current_deletions += deleted
            current_files += 1

        exhausted = True
        done = finish_commit()
        if done is not None:
            yield done
    finally:
        if not exhausted and proc.poll() is None:
            # Generator closed early; stop git instead of reading the rest.
            proc.kill()
        code = proc.wait()
        if stderr_thread is not None:
            stderr_thread.join()
        if proc.stdout is not None:
            proc.stdout.close()
        if proc.stderr is not None:
            proc.stderr.close()

    if code != 0:
        warn(f"git log exited {code}: {''.join(stderr_chunks).strip()[:500]}")


class Snapshot:
    """A detached worktree that can be moved between commits without touching the main checkout."""

    def __init__(self, repo: Path, path: Path) -> None:
        self.repo = repo
        self.path = path
        self.sha = ""

    def move_to(self, sha: str) -> None:
        check_git(["checkout", "--quiet", "--detach", "--force", sha], cwd=self.path)
        self.sha = sha

    def count_lines(
        self,
        exclude_path_prefixes: list[str] | None = None,
        exclude_path_globs: list[str] | None = None,
    ) -> tuple[int, int]:
        """Return ``(total_lines, files_counted)`` over the tracked files of the current commit."""
        total = 0
        files = 0
        for rel in list_tracked_files(self.path):
            if should_exclude_path(rel, exclude_path_prefixes or [], exclude_path_globs or []):
                continue
            p = self.path / rel
            if not p.is_file():
                continue
            try:
                text = p.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                warn(f"skipping file {rel} at {self.sha[:12]}: {e}")
                continue
            total += text.count("\n") + 1
            files += 1
        return total, files


@contextlib.contextmanager
def snapshot_worktree(repo: Path, sha: str) -> Iterator[Snapshot]:
    """Check ``sha`` out into a temporary detached worktree; the worktree is removed on exit."""
    with tempfile.TemporaryDirectory(prefix="git-metrics-") as tmp:
        path = Path(tmp) / "snapshot"
        check_git(["worktree", "add", "--quiet", "--detach", str(path), sha], cwd=repo)
        snap = Snapshot(repo, path)
        snap.sha = sha
        try:
            yield snap
        finally:
            code, _, err = run_git(["worktree", "remove", "--force", str(path)], cwd=repo)
            if code != 0:
                warn(f"could not remove snapshot worktree {path}: {err.strip()[:200]}")
            run_git(["worktree", "prune"], cwd=repo)


def iter_checkout_commits(
    repo: Path,
    *,
    rev: str = "HEAD",
    include_merges: bool = False,
    exclude_path_prefixes: list[str] | None = None,
    exclude_path_globs: list[str] | None = None,
) -> Iterator[CommitStat]:
    """Yield one CommitStat per commit by counting every tracked line at each commit.

    Much slower than the numstat reader; line growth between commits is reported as
    insertions and shrinkage as deletions, so the accumulated total is the absolute count.
    """
    if not _ensure_history(repo, rev):
        return

    commits = list_commits(repo, rev=rev, include_merges=include_merges)
    if not commits:
        return

    previous_total = 0
    with snapshot_worktree(repo, commits[0][0]) as snap:
        for sha, commit_iso in commits:
            ts = parse_commit_iso(commit_iso)
            if ts is None:
                warn(f"skipping commit {sha[:12]}: unparseable date {commit_iso!r}")
                continue
            try:
                snap.move_to(sha)
                total, files = snap.count_lines(exclude_path_prefixes, exclude_path_globs)
            except GitError as e:
                warn(f"skipping commit {sha[:12]}: {e}")
                continue
            delta = total - previous_total
            previous_total = total
            yield CommitStat(
                sha=sha,
                timestamp=ts,
                insertions=max(delta, 0),
                deletions=max(-delta, 0),
                files_touched=files,
            )


STRATEGIES = {
    "numstat": iter_numstat_commits,
    "checkout": iter_checkout_commits,
}


def read_history(repo: Path, strategy: str = "numstat", **kwargs: object) -> Iterator[CommitStat]:
    try:
        reader = STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"unknown history strategy: {strategy!r}") from None
    return reader(repo, **kwargs)  # type: ignore[arg-type]
