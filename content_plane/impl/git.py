import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

from content_plane import paths
from content_plane.base import BLOB, TREE, Blob, Commit, ContentRepo, Snapshot
from content_plane.errors import BackendError
from content_plane.impl.store import Clock
from content_plane.settings import ContentSettings

logger = logging.getLogger("content_plane.impl.git")

# sha, tree, parents, author, committer date, raw body
LOG_FORMAT = "%H%x1f%T%x1f%P%x1f%an <%ae>%x1f%cI%x1f%B%x1e"


def _run_git(cwd: Path, args: list[str], env: dict[str, str] | None = None) -> str:
    result = subprocess.run(
        ["git", "--literal-pathspecs", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
        env={**os.environ, **env} if env else None,
    )
    return result.stdout.strip()


def _run_git_bytes(cwd: Path, args: list[str]) -> bytes:
    result = subprocess.run(
        ["git", "--literal-pathspecs", *args],
        cwd=cwd,
        capture_output=True,
        check=True,
    )
    return result.stdout


def _parse_log(output: str) -> list[Commit]:
    commits = []
    for record in output.split("\x1e"):
        record = record.strip("\n")
        if not record:
            continue
        sha, tree_sha, parents, author, date, message = record.split("\x1f", 5)
        commits.append(
            Commit(
                sha=sha,
                tree_sha=tree_sha,
                parent_sha=parents.split()[0] if parents else None,
                author=author,
                message=message.rstrip("\n"),
                committer_date=datetime.fromisoformat(date),
            )
        )
    return commits


def format_author(author: str) -> str:
    """git wants `Name <email>`, make one up for bare names."""
    if "<" in author and author.endswith(">"):
        return author
    return f"{author} <{author.replace(' ', '').lower()}@wiki.local>"


class GitContentRepo(ContentRepo):
    """
    Content repository over a git working copy.

    The working tree is the working area: saves write files into it, then
    `git add` and `git commit`. Reads go straight to the object database.
    """

    def __init__(
        self,
        work_path: str | Path,
        settings: ContentSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(settings)
        self.work_path = Path(work_path).absolute()
        self.clock = clock

        if not (self.work_path / ".git").exists():
            self.work_path.mkdir(parents=True, exist_ok=True)
            _run_git(self.work_path, ["init"])
            logger.info(f"Initialized git repository at {self.work_path}")

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("GitContentRepo(...)")
        else:
            with p.group(4, "GitContentRepo(", ")"):
                p.breakable()
                p.text(f"path={self.work_path},")
                p.breakable()

    def _log(self, args: list[str]) -> list[Commit]:
        try:
            output = _run_git(
                self.work_path, ["log", f"--format={LOG_FORMAT}", *args]
            )
        except subprocess.CalledProcessError as e:
            # No commits yet, or an unknown revision
            logger.debug(f"git log {args} failed: {e.stderr.strip()}")
            return []
        return _parse_log(output)

    def _commit_env(self) -> dict[str, str]:
        env = {
            "GIT_COMMITTER_NAME": self.settings.committer_name,
            "GIT_COMMITTER_EMAIL": self.settings.committer_email,
            "GIT_AUTHOR_NAME": self.settings.committer_name,
            "GIT_AUTHOR_EMAIL": self.settings.committer_email,
        }
        if self.clock is not None:
            # git dates have second resolution
            date = self.clock().replace(microsecond=0).isoformat()
            env["GIT_COMMITTER_DATE"] = date
            env["GIT_AUTHOR_DATE"] = date
        return env

    def latest_commit_for_path(self, path: str) -> Commit | None:
        commits = self.history_for_path(path, limit=1)
        return commits[0] if commits else None

    def commit_by_id(self, sha: str) -> Commit | None:
        try:
            full_sha = _run_git(
                self.work_path,
                ["rev-parse", "--verify", "--quiet", f"{sha}^{{commit}}"],
            )
        except subprocess.CalledProcessError:
            return None
        commits = self._log(["-n1", full_sha])
        return commits[0] if commits else None

    def root_snapshot(self, commit: Commit) -> Snapshot:
        return Snapshot(commit.tree_sha, TREE)

    def entries(self, snapshot: Snapshot) -> list[tuple[str, Snapshot]]:
        if not self.is_directory(snapshot):
            return []
        try:
            output = _run_git_bytes(self.work_path, ["ls-tree", "-z", snapshot.sha])
        except subprocess.CalledProcessError as e:
            logger.warning(f"git ls-tree {snapshot.sha} failed: {e.stderr!r}")
            return []

        entries = []
        for line in output.decode("utf-8").split("\0"):
            if not line:
                continue
            meta, name = line.split("\t", 1)
            _, kind, sha = meta.split()
            # Submodules are neither files nor directories here
            if kind in (BLOB, TREE):
                entries.append((name, Snapshot(sha, kind)))
        return sorted(entries)

    def child_of(self, snapshot: Snapshot, name: str) -> Snapshot | None:
        for entry_name, child in self.entries(snapshot):
            if entry_name == name:
                return child
        return None

    def file_bytes(self, snapshot: Snapshot) -> Blob:
        try:
            return _run_git_bytes(self.work_path, ["cat-file", "blob", snapshot.sha])
        except subprocess.CalledProcessError as e:
            raise BackendError(f"Missing blob {snapshot.sha}") from e

    def history_for_path(
        self, path: str, limit: int | None = None, anchor: Commit | None = None
    ) -> list[Commit]:
        args = []
        if limit is not None:
            args.append(f"-n{limit}")
        if anchor is not None:
            args.append(anchor.sha)
        args.append("--")
        if path:
            args.append(path)
        return self._log(args)

    def write_file(self, path: str, content: Blob) -> None:
        file_path = self.work_path / paths.normalize(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
        except OSError as e:
            raise BackendError(f"Cannot write {path!r}: {e}") from e

    def stage(self, path: str) -> None:
        try:
            _run_git(self.work_path, ["add", "--", paths.normalize(path)])
        except subprocess.CalledProcessError as e:
            raise BackendError(f"git add failed: {e.stderr.strip()}") from e

    def commit(self, message: str, author: str | None = None) -> Commit:
        args = ["commit", "-m", message]
        if author:
            args.append(f"--author={format_author(author)}")
        try:
            _run_git(self.work_path, args, env=self._commit_env())
        except subprocess.CalledProcessError as e:
            raise BackendError(f"git commit failed: {e.stderr or e.output}") from e

        commits = self._log(["-n1", "HEAD"])
        if not commits:
            raise BackendError("HEAD missing after commit")
        logger.info(f"Committed {commits[0].sha[:7]}: {message}")
        return commits[0]

    def diff(self, from_ref: str, to_ref: str, path: str) -> str:
        args = ["diff", from_ref, to_ref, "--"]
        if path:
            args.append(path)
        try:
            result = subprocess.run(
                ["git", "--literal-pathspecs", *args],
                cwd=self.work_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise BackendError(f"git diff failed: {e.stderr.strip()}") from e
        return result.stdout

    def archive(self, sha: str, prefix: str) -> bytes:
        try:
            return _run_git_bytes(
                self.work_path,
                ["archive", "--format=tar.gz", f"--prefix={prefix}", sha],
            )
        except subprocess.CalledProcessError as e:
            raise BackendError(f"git archive failed: {e.stderr!r}") from e


def create_git_content_repo(
    work_path: str | Path,
    settings: ContentSettings | None = None,
    clock: Clock | None = None,
) -> GitContentRepo:
    return GitContentRepo(work_path, settings=settings, clock=clock)
