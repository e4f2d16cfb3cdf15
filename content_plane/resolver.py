"""
Resolution of a path and optional version id to a Page or a Tree.

Absence is a return value: only `resolve_or_fail` raises `NotFound`.
An invalid path raises `InvalidPath` from every entry point.
"""

from content_plane import lookup, paths
from content_plane.base import ContentRepo
from content_plane.errors import NotFound
from content_plane.objects import AnyObject, Page, Tree


def resolve(
    repo: ContentRepo, path: str | None, version_id: str | None = None
) -> AnyObject | None:
    """Find object in repo by path and optional commit sha"""
    path = paths.normalize(path)
    paths.validate(path)

    with repo.lock:
        found = lookup.locate(repo, path, version_id)
        if found is None:
            return None

        snapshot, commit = found
        current = version_id is None
        if repo.is_file(snapshot):
            return Page(repo, path, snapshot, commit, current)
        if repo.is_directory(snapshot):
            return Tree(repo, path, snapshot, commit, current)
        return None


def resolve_or_fail(
    repo: ContentRepo, path: str | None, version_id: str | None = None
) -> AnyObject:
    obj = resolve(repo, path, version_id)
    if obj is None:
        raise NotFound(paths.normalize(path))
    return obj


def resolve_page(
    repo: ContentRepo, path: str | None, version_id: str | None = None
) -> Page | None:
    obj = resolve(repo, path, version_id)
    return obj if isinstance(obj, Page) else None


def resolve_tree(
    repo: ContentRepo, path: str | None, version_id: str | None = None
) -> Tree | None:
    obj = resolve(repo, path, version_id)
    return obj if isinstance(obj, Tree) else None
