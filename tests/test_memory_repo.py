import pytest

from content_plane import BackendError, ContentSettings, Page, resolve
from content_plane.impl.memory import MemoryContentRepo, create_memory_content_repo


def test_memory_repo_shared_data(clock):
    data = {}
    repo1 = create_memory_content_repo(data, clock=clock)
    Page(repo1, "db/host").write("localhost", "init")

    # Second repo over the same data sees the commit
    repo2 = create_memory_content_repo(data, clock=clock)
    assert resolve(repo2, "db/host").content() == b"localhost"
    assert set(data) == {"objects", "commits", "branches"}


def test_memory_repo_branches_are_isolated(clock):
    data = {}
    master = MemoryContentRepo(data, clock=clock)
    Page(master, "a.txt").write("master", "init")

    dev = MemoryContentRepo(data, branch="dev", clock=clock)
    assert resolve(dev, "a.txt") is None


def test_blob_hashing_matches_git():
    repo = create_memory_content_repo()
    Page(repo, "hello.txt").write("hello\n", "init")
    # git hash-object of "hello\n"
    assert resolve(repo, "hello.txt").sha == "ce013625030ba8dba906f756967f9e9ca394464a"


def test_commit_without_staged_changes_fails():
    repo = create_memory_content_repo()
    with pytest.raises(BackendError):
        repo.commit("empty")


def test_stage_requires_working_area_file():
    repo = create_memory_content_repo()
    with pytest.raises(BackendError):
        repo.stage("missing.txt")


def test_ambiguous_prefix_does_not_resolve(clock):
    repo = create_memory_content_repo(clock=clock)
    page = Page(repo, "a.txt")
    shas = []
    for i in range(40):
        page.write(f"version {i}", f"v{i}")
        shas.append(page.commit.sha)

    # With 40 commits at least two share their first hex digit
    first_digits = [x[0] for x in shas]
    shared = next(x for x in first_digits if first_digits.count(x) > 1)
    assert repo.commit_by_id(shared) is None
    assert repo.commit_by_id(shas[0]) is not None
    assert repo.commit_by_id(shas[0].upper()) is not None


def test_history_cap(clock):
    repo = create_memory_content_repo(
        settings=ContentSettings(history_limit=2), clock=clock
    )
    page = Page(repo, "a.txt")
    page.write("v1", "t1")
    t1 = page.commit
    page.write("v2", "t2")
    t2 = page.commit
    page.write("v3", "t3")

    assert [x.message for x in page.history()] == ["t3", "t2"]
    assert len(repo.history_for_path("a.txt")) == 3

    # t1 is older than the whole capped history: oldest entry fallback
    oldest = resolve(repo, "a.txt", t1.sha)
    assert oldest.next_commit() == t2


def test_history_cap_disabled(clock):
    repo = create_memory_content_repo(
        settings=ContentSettings(history_limit=None), clock=clock
    )
    page = Page(repo, "a.txt")
    for i in range(35):
        page.write(f"v{i}", f"t{i}")
    assert len(page.history()) == 35


def test_default_history_cap(clock):
    repo = create_memory_content_repo(clock=clock)
    page = Page(repo, "a.txt")
    for i in range(32):
        page.write(f"v{i}", f"t{i}")
    assert len(page.history()) == 30


def test_history_is_memoized_until_save(clock):
    repo = create_memory_content_repo(clock=clock)
    Page(repo, "a.txt").write("v1", "t1")

    stale = resolve(repo, "a.txt")
    assert len(stale.history()) == 1
    resolve(repo, "a.txt").write("v2", "t2")

    # Another object saved: this one keeps its cached view
    assert len(stale.history()) == 1
    assert stale.latest_commit().message == "t1"
