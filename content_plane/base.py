import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from content_plane.settings import ContentSettings

Blob = bytes

BLOB = "blob"
TREE = "tree"


@dataclass(frozen=True)
class Commit:
    """
    Immutable commit metadata. `committer_date` is always timezone aware.
    """

    sha: str
    tree_sha: str
    parent_sha: str | None
    author: str | None
    message: str
    committer_date: datetime

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        p.text(f"Commit({self.sha[:7]}, {self.committer_date.isoformat()})")


@dataclass(frozen=True)
class Snapshot:
    """
    Resolved state of a path at some commit: a blob (file bytes) or a tree
    (directory listing), addressed by its sha.
    """

    sha: str
    kind: str


class ContentRepo:
    """
    Content-addressable, commit-based store backing the object model.

    Repo is configured with a shared state of commits/objects and a mutable
    working area where the next commit is prepared.
    """

    def __init__(self, settings: ContentSettings | None = None) -> None:
        self.settings = settings or ContentSettings()
        self.lock = threading.RLock()

    def latest_commit_for_path(self, path: str) -> Commit | None:
        """Most recent commit that touched `path`, None if there is none."""
        raise NotImplementedError()

    def commit_by_id(self, sha: str) -> Commit | None:
        """Resolve a full or abbreviated commit id."""
        raise NotImplementedError()

    def root_snapshot(self, commit: Commit) -> Snapshot:
        """Root directory of a commit."""
        raise NotImplementedError()

    def child_of(self, snapshot: Snapshot, name: str) -> Snapshot | None:
        """Look up a directory entry by name."""
        raise NotImplementedError()

    def entries(self, snapshot: Snapshot) -> list[tuple[str, Snapshot]]:
        """All entries of a directory snapshot as (name, snapshot) pairs."""
        raise NotImplementedError()

    def is_file(self, snapshot: Snapshot) -> bool:
        return snapshot.kind == BLOB

    def is_directory(self, snapshot: Snapshot) -> bool:
        return snapshot.kind == TREE

    def file_bytes(self, snapshot: Snapshot) -> Blob:
        """Content of a file snapshot."""
        raise NotImplementedError()

    def history_for_path(
        self, path: str, limit: int | None = None, anchor: Commit | None = None
    ) -> list[Commit]:
        """Commits touching `path`, newest first, starting at `anchor` (or head)."""
        raise NotImplementedError()

    def write_file(self, path: str, content: Blob) -> None:
        """Write a file into the working area, creating parent directories."""
        raise NotImplementedError()

    def stage(self, path: str) -> None:
        """Include the working area content of `path` in the next commit."""
        raise NotImplementedError()

    def commit(self, message: str, author: str | None = None) -> Commit:
        """Commit staged changes and return the new commit."""
        raise NotImplementedError()

    def diff(self, from_ref: str, to_ref: str, path: str) -> str:
        """Unified diff between two commits restricted to `path`."""
        raise NotImplementedError()

    def archive(self, sha: str, prefix: str) -> bytes:
        """Gzip'd tarball of a tree (or a commit's root tree)."""
        raise NotImplementedError()
