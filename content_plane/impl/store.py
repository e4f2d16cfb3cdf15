import difflib
import hashlib
import io
import json
import logging
import tarfile
from datetime import datetime, timezone
from typing import Callable

from content_plane import lookup, paths
from content_plane.base import BLOB, TREE, Blob, Commit, ContentRepo, Snapshot
from content_plane.errors import BackendError
from content_plane.settings import ContentSettings

logger = logging.getLogger("content_plane.impl.store")

Clock = Callable[[], datetime]
TreeEntries = dict[str, Snapshot]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def object_sha(kind: str, payload: bytes) -> str:
    # Same hashing scheme as git loose objects
    header = b"%s %d\0" % (kind.encode(), len(payload))
    return hashlib.sha1(header + payload).hexdigest()


def encode_tree(entries: TreeEntries) -> bytes:
    return json.dumps(
        [[name, x.kind, x.sha] for name, x in sorted(entries.items())]
    ).encode("utf-8")


def decode_tree(payload: bytes) -> TreeEntries:
    return {name: Snapshot(sha, kind) for name, kind, sha in json.loads(payload)}


def _diff_lines(content: Blob | None) -> list[str]:
    if content is None:
        return []
    lines = content.decode("utf-8", errors="replace").splitlines(keepends=True)
    return [x if x.endswith("\n") else x + "\n" for x in lines]


class StoreContentRepo(ContentRepo):
    """
    Content repository over a content-addressable object store.

    Subclasses provide storage of objects (blobs and trees), commits and the
    branch head. The working area and staged changes live in memory.
    """

    def __init__(
        self,
        settings: ContentSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(settings)
        self.clock = clock or utc_now
        self.work: dict[str, Blob] = {}
        self.staged: dict[str, Blob] = {}

    # Storage primitives

    def _get_object(self, sha: str) -> tuple[str, bytes] | None:
        raise NotImplementedError()

    def _put_object(self, sha: str, kind: str, payload: bytes) -> None:
        raise NotImplementedError()

    def _get_commit(self, sha: str) -> Commit | None:
        raise NotImplementedError()

    def _find_commits(self, prefix: str) -> list[Commit]:
        """Commits whose sha starts with `prefix`, at most two."""
        raise NotImplementedError()

    def _put_commit(self, commit: Commit) -> None:
        raise NotImplementedError()

    def _head(self) -> Commit | None:
        raise NotImplementedError()

    def _set_head(self, commit: Commit) -> None:
        raise NotImplementedError()

    # Object helpers

    def _store(self, kind: str, payload: bytes) -> str:
        sha = object_sha(kind, payload)
        if self._get_object(sha) is None:
            self._put_object(sha, kind, payload)
        return sha

    def _read_tree(self, sha: str) -> TreeEntries:
        obj = self._get_object(sha)
        if obj is None or obj[0] != TREE:
            raise BackendError(f"Missing tree {sha}")
        return decode_tree(obj[1])

    def _update_tree(
        self, tree_sha: str | None, names: list[str], blob_sha: str
    ) -> str:
        entries = self._read_tree(tree_sha) if tree_sha else {}
        name, rest = names[0], names[1:]
        existing = entries.get(name)

        if rest:
            if existing is not None and existing.kind != TREE:
                raise BackendError(f"Cannot create directory over file {name!r}")
            child_sha = self._update_tree(
                existing.sha if existing else None, rest, blob_sha
            )
            entries[name] = Snapshot(child_sha, TREE)
        else:
            if existing is not None and existing.kind == TREE:
                raise BackendError(f"Cannot overwrite directory {name!r}")
            entries[name] = Snapshot(blob_sha, BLOB)

        return self._store(TREE, encode_tree(entries))

    def _sha_at(self, commit: Commit | None, path: str) -> str | None:
        snapshot = lookup.walk(self, commit, path)
        return snapshot.sha if snapshot else None

    def _collect(self, snapshot: Snapshot, base: str) -> dict[str, Blob]:
        if self.is_file(snapshot):
            return {base: self.file_bytes(snapshot)}
        files: dict[str, Blob] = {}
        for name, child in self.entries(snapshot):
            files.update(self._collect(child, paths.join(base, name)))
        return files

    def _resolve_ref(self, ref: str) -> Commit:
        commit = self.commit_by_id(ref)
        if commit is None:
            raise BackendError(f"Unknown revision {ref!r}")
        return commit

    # ContentRepo

    def latest_commit_for_path(self, path: str) -> Commit | None:
        commits = self.history_for_path(path, limit=1)
        return commits[0] if commits else None

    def commit_by_id(self, sha: str) -> Commit | None:
        sha = sha.lower()
        if len(sha) == 40:
            return self._get_commit(sha)
        matches = self._find_commits(sha)
        # Ambiguous prefixes do not resolve
        return matches[0] if len(matches) == 1 else None

    def root_snapshot(self, commit: Commit) -> Snapshot:
        return Snapshot(commit.tree_sha, TREE)

    def child_of(self, snapshot: Snapshot, name: str) -> Snapshot | None:
        if not self.is_directory(snapshot):
            return None
        return self._read_tree(snapshot.sha).get(name)

    def entries(self, snapshot: Snapshot) -> list[tuple[str, Snapshot]]:
        if not self.is_directory(snapshot):
            return []
        return sorted(self._read_tree(snapshot.sha).items())

    def file_bytes(self, snapshot: Snapshot) -> Blob:
        obj = self._get_object(snapshot.sha)
        if obj is None or obj[0] != BLOB:
            raise BackendError(f"Missing blob {snapshot.sha}")
        return obj[1]

    def history_for_path(
        self, path: str, limit: int | None = None, anchor: Commit | None = None
    ) -> list[Commit]:
        commits: list[Commit] = []
        commit = anchor or self._head()
        while commit is not None and (limit is None or len(commits) < limit):
            parent = (
                self._get_commit(commit.parent_sha) if commit.parent_sha else None
            )
            # A commit touches a path when the object there changed
            if self._sha_at(commit, path) != self._sha_at(parent, path):
                commits.append(commit)
            commit = parent
        return commits

    def write_file(self, path: str, content: Blob) -> None:
        self.work[paths.normalize(path)] = content

    def stage(self, path: str) -> None:
        path = paths.normalize(path)
        if path not in self.work:
            raise BackendError(f"Nothing to stage at {path!r}")
        self.staged[path] = self.work[path]

    def commit(self, message: str, author: str | None = None) -> Commit:
        if not self.staged:
            raise BackendError("Nothing to commit")

        head = self._head()
        tree_sha = head.tree_sha if head else None
        staged, self.staged = self.staged, {}
        try:
            for path, content in sorted(staged.items()):
                blob_sha = self._store(BLOB, content)
                tree_sha = self._update_tree(tree_sha, paths.split(path), blob_sha)
        except BackendError:
            # Rejected changes must not leak into the next commit
            for path in staged:
                self.work.pop(path, None)
            raise

        if tree_sha is None or (head is not None and tree_sha == head.tree_sha):
            raise BackendError("Nothing to commit")

        committer_date = self.clock()
        header = json.dumps(
            {
                "tree": tree_sha,
                "parent": head.sha if head else None,
                "author": author,
                "date": committer_date.isoformat(),
                "message": message,
            },
            sort_keys=True,
        ).encode("utf-8")
        commit = Commit(
            sha=object_sha("commit", header),
            tree_sha=tree_sha,
            parent_sha=head.sha if head else None,
            author=author,
            message=message,
            committer_date=committer_date,
        )
        self._put_commit(commit)
        self._set_head(commit)
        logger.info(f"Committed {commit.sha[:7]}: {message}")
        return commit

    def diff(self, from_ref: str, to_ref: str, path: str) -> str:
        old_commit = self._resolve_ref(from_ref)
        new_commit = self._resolve_ref(to_ref)

        old_snapshot = lookup.walk(self, old_commit, path)
        new_snapshot = lookup.walk(self, new_commit, path)
        old = self._collect(old_snapshot, path) if old_snapshot else {}
        new = self._collect(new_snapshot, path) if new_snapshot else {}

        out: list[str] = []
        for name in sorted(set(old) | set(new)):
            if old.get(name) == new.get(name):
                continue
            out.extend(
                difflib.unified_diff(
                    _diff_lines(old.get(name)),
                    _diff_lines(new.get(name)),
                    fromfile=f"a/{name}" if name in old else "/dev/null",
                    tofile=f"b/{name}" if name in new else "/dev/null",
                )
            )
        return "".join(out)

    def archive(self, sha: str, prefix: str) -> bytes:
        commit = self._get_commit(sha)
        tree_sha = commit.tree_sha if commit else sha
        obj = self._get_object(tree_sha)
        if obj is None or obj[0] != TREE:
            raise BackendError(f"Not a tree: {sha!r}")

        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            files = self._collect(Snapshot(tree_sha, TREE), "")
            for name, content in sorted(files.items()):
                info = tarfile.TarInfo(prefix + name)
                info.size = len(content)
                tar.addfile(info, io.BytesIO(content))
        return buf.getvalue()
