import pytest

from content_plane.errors import InvalidPath
from content_plane.paths import is_version_id, join, normalize, split, validate


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ""),
        ("", ""),
        ("/", ""),
        ("docs", "docs"),
        ("/docs/readme.md/", "docs/readme.md"),
        ("docs//readme.md", "docs/readme.md"),
        ("./docs/./readme.md", "docs/readme.md"),
        ("docs/sub/../readme.md", "docs/readme.md"),
        ("../../docs", "docs"),
        ("docs/..", ""),
        ("my docs/read me.md", "my docs/read me.md"),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize(
    "raw", ["", "a/b/../c", "//x//y/", "./..", "a b/c", "x/./y/../../z"]
)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


@pytest.mark.parametrize(
    "path",
    ["", "docs", "docs/readme.md", "a+b/c-d_e", "ns:page", "my docs/read me.md"],
)
def test_validate_accepts(path):
    validate(path)


@pytest.mark.parametrize(
    "path", ["bad*name", "what?", "docs/<x>", "trailing ", " leading", "end:"]
)
def test_validate_rejects(path):
    with pytest.raises(InvalidPath):
        validate(path)


def test_split_and_join():
    assert split("") == []
    assert split("a/b/c") == ["a", "b", "c"]
    assert join("", "readme.md") == "readme.md"
    assert join("docs", "readme.md") == "docs/readme.md"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("abcde", True),
        ("ABCDEF0123", True),
        ("a" * 40, True),
        ("abcd", False),
        ("a" * 41, False),
        ("xyz12", False),
        ("", False),
    ],
)
def test_is_version_id(value, expected):
    assert is_version_id(value) is expected
