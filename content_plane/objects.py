import logging
import re
from typing import Any

from content_plane import lookup, paths
from content_plane.base import Blob, Commit, ContentRepo, Snapshot
from content_plane.errors import AlreadyExists, EmptyContent, NotFound
from content_plane.history import HistoryCache
from content_plane.mime import MimeDetector, MimeType

logger = logging.getLogger("content_plane.objects")

PAGE = "page"
TREE = "tree"


class ContentObject:
    """
    Versioned object in a content repository, addressed by path.

    A ContentObject is exactly a Page or a Tree. An object without a
    snapshot is new: it does not exist in the repository yet.
    """

    kind: str

    def __init__(
        self,
        repo: ContentRepo,
        path: str | None,
        snapshot: Snapshot | None = None,
        commit: Commit | None = None,
        current: bool = False,
    ) -> None:
        path = paths.normalize(path)
        paths.validate(path)
        self.repo = repo
        self.path = path
        self.snapshot = snapshot
        self.commit = commit
        self.current = current
        self.versions = HistoryCache(repo, path, commit)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, sha={self.sha[:7]!r})"

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text(f"{type(self).__name__}(...)")
        else:
            with p.group(4, f"{type(self).__name__}(", ")"):
                p.breakable()
                p.text(f"path={self.path!r},")
                p.breakable()
                p.text(f"sha={self.sha[:7]!r},")
                p.breakable()
                p.text(f"current={self.is_current()},")
                p.breakable()

    def is_new(self) -> bool:
        return self.snapshot is None

    @property
    def sha(self) -> str:
        return "" if self.snapshot is None else self.snapshot.sha

    def is_current(self) -> bool:
        """Browsing the live state of the repository?"""
        return self.current or self.is_new()

    def is_page(self) -> bool:
        return self.kind == PAGE

    def is_tree(self) -> bool:
        return self.kind == TREE

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def pretty_name(self) -> str:
        return re.sub(r"\.[^.]+$", "", self.name)

    @property
    def safe_name(self) -> str:
        name = self.name
        if not name.strip():
            name = "root"
        return re.sub(r"[^A-Za-z0-9._-]", "_", name)

    def history(self) -> list[Commit]:
        """Commits that touched this object, newest first, capped by settings."""
        return self.versions.history()

    def latest_commit(self) -> Commit | None:
        return self.versions.latest_commit()

    def prev_commit(self) -> Commit | None:
        return self.versions.prev_commit()

    def next_commit(self) -> Commit | None:
        return self.versions.next_commit()

    def diff(self, from_ref: str, to_ref: str) -> str:
        with self.repo.lock:
            return self.repo.diff(from_ref, to_ref, self.path)


class Page(ContentObject):
    kind = PAGE

    def __init__(
        self,
        repo: ContentRepo,
        path: str | None,
        snapshot: Snapshot | None = None,
        commit: Commit | None = None,
        current: bool = False,
    ) -> None:
        super().__init__(repo, path, snapshot, commit, current)
        self.staged_content: Blob | None = None
        self._mime: MimeType | None = None

    def content(self) -> Blob | None:
        if self.staged_content is not None:
            return self.staged_content
        return self.saved_content()

    def saved_content(self) -> Blob | None:
        """Content already committed to the repository."""
        with self.repo.lock:
            if self.snapshot is None:
                return None
            return self.repo.file_bytes(self.snapshot)

    def text(self) -> str | None:
        content = self.content()
        return None if content is None else content.decode("utf-8")

    def set_content(self, content: Blob | str | None) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.staged_content = content

    def is_saved(self) -> bool:
        """Check if there is no unsaved content"""
        return not self.is_new() and self.staged_content is None

    def write(
        self, content: Blob | str, message: str, author: str | None = None
    ) -> None:
        self.set_content(content)
        self.save(message, author)

    def save(self, message: str, author: str | None = None) -> None:
        with self.repo.lock:
            content = self.content()
            if content == self.saved_content():
                logger.debug(f"Nothing to save for {self.path!r}")
                return

            if content is None or not content.strip():
                raise EmptyContent(f"No content for {self.path!r}")
            if self.is_new() and lookup.locate(self.repo, self.path) is not None:
                raise AlreadyExists(self.path)

            if not message or not message.strip():
                message = self.repo.settings.empty_commit_message

            self.repo.write_file(self.path, content)
            self.repo.stage(self.path)
            new_commit = self.repo.commit(message, author)
            logger.info(f"Saved {self.path!r} as {new_commit.sha[:7]}")

            self.staged_content = None
            self._mime = None
            history = self.repo.history_for_path(
                self.path, limit=self.repo.settings.history_limit
            )
            self.commit = history[0] if history else None
            self.versions.reset(self.commit, history)
            snapshot = lookup.walk(self.repo, self.commit, self.path)
            if snapshot is None:
                raise NotFound(self.path)
            self.snapshot = snapshot
            self.current = True

    @property
    def extension(self) -> str:
        m = re.search(r".\.([^.]+)$", self.name)
        return m.group(1) if m else ""

    def mime(self) -> MimeType:
        if self._mime is None:
            detector = MimeDetector(self.repo.settings.default_mime)
            self._mime = detector.detect(self.extension, self.content())
        return self._mime


class Tree(ContentObject):
    kind = TREE

    def __init__(
        self,
        repo: ContentRepo,
        path: str | None,
        snapshot: Snapshot | None = None,
        commit: Commit | None = None,
        current: bool = False,
    ) -> None:
        super().__init__(repo, path, snapshot, commit, current)
        self._pages: list[Page] | None = None
        self._trees: list[Tree] | None = None

    def _entries(self) -> list[tuple[str, Snapshot]]:
        with self.repo.lock:
            if self.snapshot is None:
                return []
            return self.repo.entries(self.snapshot)

    def pages(self) -> list[Page]:
        if self._pages is None:
            current = self.is_current()
            pages = [
                Page(self.repo, paths.join(self.path, name), x, self.commit, current)
                for name, x in self._entries()
                if self.repo.is_file(x)
            ]
            self._pages = sorted(pages, key=lambda x: x.name)
        return self._pages

    def trees(self) -> list["Tree"]:
        if self._trees is None:
            current = self.is_current()
            trees = [
                Tree(self.repo, paths.join(self.path, name), x, self.commit, current)
                for name, x in self._entries()
                if self.repo.is_directory(x)
            ]
            self._trees = sorted(trees, key=lambda x: x.name)
        return self._trees

    def children(self) -> list[ContentObject]:
        return [*self.trees(), *self.pages()]

    @property
    def pretty_name(self) -> str:
        root_label = self.repo.settings.root_label
        if not self.path:
            return root_label
        return f"{root_label}/{self.path}"

    def archive(self) -> bytes:
        """Gzip'd tarball of this tree"""
        with self.repo.lock:
            return self.repo.archive(self.sha, prefix=f"{self.safe_name}/")


AnyObject = Page | Tree
