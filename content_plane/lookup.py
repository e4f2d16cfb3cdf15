import logging

from content_plane import paths
from content_plane.base import Commit, ContentRepo, Snapshot

logger = logging.getLogger("content_plane.lookup")


def walk(repo: ContentRepo, commit: Commit | None, path: str) -> Snapshot | None:
    """Walk a commit's root snapshot down `path`, one segment at a time."""
    if commit is None:
        return None

    snapshot = repo.root_snapshot(commit)
    for name in paths.split(path):
        child = repo.child_of(snapshot, name)
        if child is None:
            return None
        snapshot = child
    return snapshot


def locate(
    repo: ContentRepo, path: str, version_id: str | None = None
) -> tuple[Snapshot, Commit] | None:
    """
    Find the snapshot at `path` and the commit it was resolved against.

    Without a version id the latest commit that touched the path is used.
    """
    if version_id is not None:
        if not paths.is_version_id(version_id):
            logger.debug(f"Ignoring malformed version id {version_id!r}")
            return None
        commit = repo.commit_by_id(version_id)
    else:
        commit = repo.latest_commit_for_path(path)

    if commit is None:
        return None

    snapshot = walk(repo, commit, path)
    if snapshot is None:
        logger.debug(f"{path!r} not present at {commit.sha[:7]}")
        return None
    return snapshot, commit
