import subprocess
from pathlib import Path

from content_plane import Page, resolve, resolve_page
from content_plane.impl.git import GitContentRepo, format_author


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def test_git_repo_lifecycle(tmp_path: Path, clock):
    repo_path = tmp_path / "content-repo"
    repo = GitContentRepo(repo_path, clock=clock)
    assert (repo_path / ".git").exists()

    page = Page(repo, "docs/readme.md")
    page.write("Hello", "init", author="Alice Smith")

    # Working tree holds the committed file
    assert (repo_path / "docs" / "readme.md").read_bytes() == b"Hello"
    assert _git(repo_path, "status", "--porcelain") == ""
    assert _git(repo_path, "log", "-1", "--format=%s") == "init"
    assert _git(repo_path, "log", "-1", "--format=%an <%ae>") == (
        "Alice Smith <alicesmith@wiki.local>"
    )
    assert page.commit.sha == _git(repo_path, "rev-parse", "HEAD")


def test_git_repo_persistence(tmp_path: Path, clock):
    repo_path = tmp_path / "content-repo"

    repo1 = GitContentRepo(repo_path, clock=clock)
    Page(repo1, "db/host").write("localhost", "init")

    # Re-open repo
    repo2 = GitContentRepo(repo_path, clock=clock)
    page = resolve_page(repo2, "db/host")
    assert page.content() == b"localhost"


def test_git_repo_sees_external_commits(tmp_path: Path, clock):
    repo_path = tmp_path / "content-repo"
    repo = GitContentRepo(repo_path, clock=clock)
    Page(repo, "cache.txt").write("enabled", "init")

    # Commit behind the repo's back
    (repo_path / "cache.txt").write_text("disabled")
    _git(repo_path, "add", "cache.txt")
    _git(
        repo_path,
        "-c",
        "user.name=Ext",
        "-c",
        "user.email=ext@test",
        "commit",
        "-m",
        "external",
    )

    page = resolve(repo, "cache.txt")
    assert page.content() == b"disabled"
    assert [x.message for x in page.history()] == ["external", "init"]


def test_format_author():
    assert format_author("Bob") == "Bob <bob@wiki.local>"
    assert format_author("Bob <bob@example.com>") == "Bob <bob@example.com>"
