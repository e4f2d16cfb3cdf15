from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from content_plane.base import ContentRepo
from content_plane.impl.git import create_git_content_repo
from content_plane.impl.memory import MemoryRepoData, create_memory_content_repo
from content_plane.impl.sql import Base, create_sql_content_repo
from content_plane.impl.store import Clock


class TickingClock:
    """Every call is one second later than the previous one."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class RepoProvider:
    def create(self, path: Path, clock: Clock) -> ContentRepo:
        raise NotImplementedError()

    def cleanup(self, repo: ContentRepo) -> None:
        pass


class MemoryRepoProvider(RepoProvider):
    def __init__(self):
        self.data: MemoryRepoData = {}

    def create(self, path: Path, clock: Clock) -> ContentRepo:
        # Memory repo ignores path, but uses shared dict
        return create_memory_content_repo(self.data, clock=clock)


class GitRepoProvider(RepoProvider):
    def create(self, path: Path, clock: Clock) -> ContentRepo:
        return create_git_content_repo(path / "work-repo", clock=clock)


class SqlRepoProvider(RepoProvider):
    def __init__(self):
        self.engine = None

    def create(self, path: Path, clock: Clock) -> ContentRepo:
        db_url = f"sqlite:///{path / 'content.db'}"

        # Fresh engine on every call simulates an application restart
        if self.engine:
            self.engine.dispose()

        self.engine = create_engine(db_url)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine)
        return create_sql_content_repo(Session, clock=clock)

    def cleanup(self, repo: ContentRepo) -> None:
        if self.engine:
            self.engine.dispose()


PROVIDERS = [
    MemoryRepoProvider,
    GitRepoProvider,
    SqlRepoProvider,
]
PROVIDER_IDS = ["memory", "git", "sql"]


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture(params=PROVIDERS, ids=PROVIDER_IDS)
def repo_provider(request) -> RepoProvider:
    return request.param()


@pytest.fixture
def repo(repo_provider: RepoProvider, tmp_path: Path, clock: TickingClock):
    repo = repo_provider.create(tmp_path, clock)
    try:
        yield repo
    finally:
        repo_provider.cleanup(repo)


def commit_count(repo: ContentRepo) -> int:
    # Every commit touches the root
    return len(repo.history_for_path(""))


@pytest.fixture
def count_commits():
    return commit_count
