from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import DateTime, ForeignKey, LargeBinary, String, Text, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from content_plane.base import Commit
from content_plane.impl.store import Clock, StoreContentRepo
from content_plane.settings import ContentSettings


class Base(DeclarativeBase):
    pass


class ObjectModel(Base):
    __tablename__ = "objects"
    sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    kind: Mapped[str] = mapped_column(String(8))
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


class CommitModel(Base):
    __tablename__ = "commits"
    sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    tree_sha: Mapped[str] = mapped_column(ForeignKey("objects.sha"))
    parent_sha: Mapped[str | None] = mapped_column(
        ForeignKey("commits.sha"), nullable=True
    )
    author: Mapped[str | None] = mapped_column(nullable=True)
    message: Mapped[str] = mapped_column(Text)
    committed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class BranchModel(Base):
    __tablename__ = "branches"
    name: Mapped[str] = mapped_column(primary_key=True)
    commit_sha: Mapped[str] = mapped_column(ForeignKey("commits.sha"))


def _to_commit(model: CommitModel) -> Commit:
    committed_at = model.committed_at
    # SQLite drops the timezone, dates are written in UTC
    if committed_at.tzinfo is None:
        committed_at = committed_at.replace(tzinfo=timezone.utc)
    return Commit(
        sha=model.sha,
        tree_sha=model.tree_sha,
        parent_sha=model.parent_sha,
        author=model.author,
        message=model.message,
        committer_date=committed_at,
    )


class SqlContentRepo(StoreContentRepo):
    """
    Content repository persisted in a relational database.

    Objects and commits are immutable rows; the branch row points at the
    head commit. The working area is local to the repo instance.
    """

    def __init__(
        self,
        session_maker: Callable[[], Session],
        branch: str = "master",
        settings: ContentSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(settings, clock)
        self.session_maker = session_maker
        self.branch = branch

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("SqlContentRepo(...)")
        else:
            with p.group(4, "SqlContentRepo(", ")"):
                p.breakable()
                p.text(f"branch='{self.branch}',")
                p.breakable()
                p.text("staged=")
                p.pretty(sorted(self.staged))
                p.breakable()

    def _get_object(self, sha: str) -> tuple[str, bytes] | None:
        with self.session_maker() as session:
            obj = session.get(ObjectModel, sha)
            if obj is None:
                return None
            return obj.kind, obj.content

    def _put_object(self, sha: str, kind: str, payload: bytes) -> None:
        with self.session_maker() as session:
            session.add(ObjectModel(sha=sha, kind=kind, content=payload))
            session.commit()

    def _get_commit(self, sha: str) -> Commit | None:
        with self.session_maker() as session:
            model = session.get(CommitModel, sha)
            return _to_commit(model) if model else None

    def _find_commits(self, prefix: str) -> list[Commit]:
        stmt = select(CommitModel).where(CommitModel.sha.startswith(prefix)).limit(2)
        with self.session_maker() as session:
            return [_to_commit(x) for x in session.execute(stmt).scalars().all()]

    def _put_commit(self, commit: Commit) -> None:
        with self.session_maker() as session:
            session.add(
                CommitModel(
                    sha=commit.sha,
                    tree_sha=commit.tree_sha,
                    parent_sha=commit.parent_sha,
                    author=commit.author,
                    message=commit.message,
                    committed_at=commit.committer_date.astimezone(timezone.utc),
                )
            )
            session.commit()

    def _head(self) -> Commit | None:
        with self.session_maker() as session:
            branch_model = session.get(BranchModel, self.branch)
            if branch_model is None:
                return None
            model = session.get(CommitModel, branch_model.commit_sha)
            return _to_commit(model) if model else None

    def _set_head(self, commit: Commit) -> None:
        with self.session_maker() as session:
            branch_model = session.get(BranchModel, self.branch)
            if branch_model:
                branch_model.commit_sha = commit.sha
            else:
                branch_model = BranchModel(name=self.branch, commit_sha=commit.sha)
            session.add(branch_model)
            session.commit()


def create_sql_content_repo(
    session_maker: Callable[[], Session],
    branch: str = "master",
    settings: ContentSettings | None = None,
    clock: Clock | None = None,
) -> SqlContentRepo:
    return SqlContentRepo(session_maker, branch=branch, settings=settings, clock=clock)
