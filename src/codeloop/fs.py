# codeloop: Snapshot loading for the CLI. Lists the repository's files (git-aware, honoring .codeloopignore) and reads them into the {path, content, language} entries a session is seeded from. Read-only; sessions never write back.

import fnmatch
import os
import pathlib
import subprocess
from typing import Dict, List, NamedTuple, Optional, Tuple

from .config import SNAPSHOT_MAX_BYTES
from .models import FileRecord
from .store import infer_language

# Directories never walked into.
_PRUNED_DIRS = {".git", ".codeloop", "node_modules"}


class IgnoreRule(NamedTuple):
    negated: bool
    pattern: str
    rooted: bool
    dir_only: bool


_IGNORE_CACHE: Dict[pathlib.Path, Tuple[Optional[float], List[IgnoreRule]]] = {}


def normalize_path(p: str) -> str:
    """Normalize a filesystem path to POSIX-style string (forward slashes)."""
    return str(pathlib.PurePath(p).as_posix())


def parse_ignore_rules(text: str) -> List[IgnoreRule]:
    """
    Parse .codeloopignore contents into rules.

    Rules:
      - Empty lines and comments (#) are ignored.
      - Lines starting with '!' negate the ignore (unignore).
      - Leading '/' anchors to repo root; otherwise a slash-free pattern matches a name at any depth.
      - Trailing '/' targets directories only.
    """
    rules: List[IgnoreRule] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        negated = line.startswith("!")
        if negated:
            line = line[1:].strip()
            if not line:
                continue
        rooted = line.startswith("/")
        dir_only = line.endswith("/")
        pattern = line.strip("/")
        if pattern:
            rules.append(IgnoreRule(negated, pattern, rooted, dir_only))
    return rules


def _get_ignore_rules(repo_root: pathlib.Path) -> List[IgnoreRule]:
    """Return cached ignore rules for repo_root, refreshing when the file's mtime changes."""
    ig_path = (repo_root / ".codeloopignore").resolve()
    try:
        mtime: Optional[float] = ig_path.stat().st_mtime
    except FileNotFoundError:
        mtime = None
    cached = _IGNORE_CACHE.get(repo_root)
    if cached and cached[0] == mtime:
        return cached[1]
    rules: List[IgnoreRule] = []
    if mtime is not None:
        try:
            rules = parse_ignore_rules(ig_path.read_text(encoding="utf-8"))
        except OSError:
            rules = []
    _IGNORE_CACHE[repo_root] = (mtime, rules)
    return rules


def rule_matches(rule: IgnoreRule, rel_posix: str) -> bool:
    """A rule matches a path when it matches the path itself or any directory containing it."""
    parts = rel_posix.split("/")
    # Directory prefixes first; the full path only counts for non-directory rules.
    upto = len(parts) - 1 if rule.dir_only else len(parts)
    for i in range(1, upto + 1):
        prefix = "/".join(parts[:i])
        if rule.rooted or "/" in rule.pattern:
            if fnmatch.fnmatchcase(prefix, rule.pattern):
                return True
        elif fnmatch.fnmatchcase(parts[i - 1], rule.pattern):
            return True
    return False


def is_ignored(repo_root: pathlib.Path, rel_posix: str) -> bool:
    """Return True if rel_posix should be ignored per .codeloopignore matching (last rule wins)."""
    ignored = False
    for rule in _get_ignore_rules(repo_root):
        if rule_matches(rule, rel_posix):
            ignored = not rule.negated
    return ignored


def run_git(args: List[str], cwd: pathlib.Path) -> Tuple[int, str, str]:
    """Run a git command in cwd and return (returncode, stdout, stderr); rc 127 when git is missing."""
    try:
        proc = subprocess.Popen(["git"] + args, cwd=str(cwd), stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        return 127, "", str(e)
    out, err = proc.communicate()
    return proc.returncode, out, err


def _is_internal(rel: str) -> bool:
    return any(part in _PRUNED_DIRS for part in pathlib.PurePosixPath(rel).parts)


def list_repo_paths(repo_root: pathlib.Path) -> List[str]:
    """Walk the working tree and return non-ignored repo-relative file paths (POSIX)."""
    paths: List[str] = []
    for root, dirs, files in os.walk(repo_root):
        dirs[:] = [d for d in dirs if d not in _PRUNED_DIRS]
        for name in files:
            rel = normalize_path(os.path.relpath(pathlib.Path(root) / name, repo_root))
            if is_ignored(repo_root, rel):
                continue
            paths.append(rel)
    return sorted(paths)


def list_project_files(repo_root: pathlib.Path) -> List[str]:
    """Tracked plus untracked-unignored files when inside a git work tree, otherwise a plain walk."""
    rc, out, _ = run_git(["rev-parse", "--is-inside-work-tree"], repo_root)
    if rc == 0 and out.strip() == "true":
        _, tracked, _ = run_git(["ls-files", "-z"], repo_root)
        _, untracked, _ = run_git(["ls-files", "-o", "--exclude-standard", "-z"], repo_root)
        everything = {p for p in (tracked + untracked).split("\x00") if p}
        return [
            normalize_path(p)
            for p in sorted(everything)
            if not _is_internal(p) and not is_ignored(repo_root, normalize_path(p)) and (repo_root / p).is_file()
        ]
    return list_repo_paths(repo_root)


def load_snapshot(repo_root: pathlib.Path, max_bytes: int = SNAPSHOT_MAX_BYTES) -> List[FileRecord]:
    """
    Read the project into FileRecords for a session.

    Oversized files and files that are not UTF-8 text are skipped.
    """
    repo_root = repo_root.resolve()
    records: List[FileRecord] = []
    for rel in list_project_files(repo_root):
        abs_path = repo_root / rel
        try:
            if abs_path.stat().st_size > max_bytes:
                continue
            content = abs_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        records.append(FileRecord(path=rel, content=content, language=infer_language(rel)))
    return records
