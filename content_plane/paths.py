import re

from content_plane.errors import InvalidPath

PATH_PATTERN = r"[\w:.+\-_\/](?:[\w:.+\-_\/ ]*[\w.+\-_\/])?"
SHA_PATTERN = r"[A-Fa-f0-9]{5,40}"

_PATH_RE = re.compile(PATH_PATTERN)
_SHA_RE = re.compile(SHA_PATTERN)


def normalize(raw: str | None) -> str:
    """
    Clean a path the way a filesystem path cleaner would.

    Empty segments and `.` are dropped, `..` removes the previous segment
    (and is ignored at the root). The result never starts or ends with `/`.
    """
    names: list[str] = []
    for name in (raw or "").split("/"):
        if name in ("", "."):
            continue
        if name == "..":
            if names:
                names.pop()
            continue
        names.append(name)
    return "/".join(names)


def validate(path: str) -> None:
    if path and not _PATH_RE.fullmatch(path):
        raise InvalidPath(path)


def split(path: str) -> list[str]:
    return [name for name in path.split("/") if name]


def join(base: str, name: str) -> str:
    return normalize(f"{base}/{name}")


def is_version_id(value: str) -> bool:
    return bool(_SHA_RE.fullmatch(value))
