from typing import Any

from content_plane.base import Commit
from content_plane.impl.store import Clock, StoreContentRepo
from content_plane.settings import ContentSettings

MemoryRepoData = dict[str, dict[str, Any]]


class MemoryContentRepo(StoreContentRepo):
    """
    Content repository kept in plain dicts.

    `repo_data` is shared state: two repos created over the same dict see
    each other's commits, the working area is local to each repo.
    """

    def __init__(
        self,
        repo_data: MemoryRepoData,
        branch: str = "master",
        settings: ContentSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(settings, clock)
        self.repo = repo_data
        self.branch = branch

        self.objects: dict[str, tuple[str, bytes]] = self.repo.setdefault("objects", {})
        self.commits: dict[str, Commit] = self.repo.setdefault("commits", {})
        self.branches: dict[str, str] = self.repo.setdefault("branches", {})

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("MemoryContentRepo(...)")
        else:
            with p.group(4, "MemoryContentRepo(", ")"):
                p.breakable()
                p.text(f"branch='{self.branch}',")
                p.breakable()
                p.text(f"commits={len(self.commits)},")
                p.breakable()
                p.text("staged=")
                p.pretty(sorted(self.staged))
                p.breakable()

    def _get_object(self, sha: str) -> tuple[str, bytes] | None:
        return self.objects.get(sha)

    def _put_object(self, sha: str, kind: str, payload: bytes) -> None:
        self.objects[sha] = (kind, payload)

    def _get_commit(self, sha: str) -> Commit | None:
        return self.commits.get(sha)

    def _find_commits(self, prefix: str) -> list[Commit]:
        return [x for sha, x in self.commits.items() if sha.startswith(prefix)][:2]

    def _put_commit(self, commit: Commit) -> None:
        self.commits[commit.sha] = commit

    def _head(self) -> Commit | None:
        sha = self.branches.get(self.branch)
        return self.commits[sha] if sha else None

    def _set_head(self, commit: Commit) -> None:
        self.branches[self.branch] = commit.sha


def create_memory_content_repo(
    repo: MemoryRepoData | None = None,
    branch: str = "master",
    settings: ContentSettings | None = None,
    clock: Clock | None = None,
) -> MemoryContentRepo:
    return MemoryContentRepo(
        repo if repo is not None else {}, branch=branch, settings=settings, clock=clock
    )
