from typing import Any

from content_plane.base import Commit, ContentRepo


class HistoryCache:
    """
    Memoized history queries for one path, anchored at one commit.

    Values are computed on first access, under the repo lock, and kept until
    `reset()`, which is only called by a successful save.
    """

    def __init__(self, repo: ContentRepo, path: str, commit: Commit | None) -> None:
        self.repo = repo
        self.path = path
        self.commit = commit
        self._history: list[Commit] | None = None
        self._latest_commit: Commit | None = None
        self._prev_commit: Commit | None = None
        self._prev_latest_loaded = False

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("HistoryCache(...)")
        else:
            anchor = self.commit.sha[:7] if self.commit else None
            p.text(f"HistoryCache(path={self.path!r}, commit={anchor})")

    def reset(
        self, commit: Commit | None = None, history: list[Commit] | None = None
    ) -> None:
        self.commit = commit
        self._history = history
        self._latest_commit = self._prev_commit = None
        self._prev_latest_loaded = False

    def history(self) -> list[Commit]:
        with self.repo.lock:
            if self._history is None:
                self._history = self.repo.history_for_path(
                    self.path, limit=self.repo.settings.history_limit
                )
            return self._history

    def latest_commit(self) -> Commit | None:
        self._update_prev_latest_commit()
        return self._latest_commit

    def prev_commit(self) -> Commit | None:
        self._update_prev_latest_commit()
        return self._prev_commit

    def next_commit(self) -> Commit | None:
        if self.commit is None:
            return None

        h = self.history()
        for i, commit in enumerate(h):
            if commit.committer_date <= self.commit.committer_date:
                if i > 0:
                    return h[i - 1]
                if len(h) > 1:
                    return None
                break
        # Not correct when the history is truncated or too short
        return h[-1] if h else None

    def _update_prev_latest_commit(self) -> None:
        with self.repo.lock:
            if self._prev_latest_loaded:
                return
            if self.commit is not None:
                commits = self.repo.history_for_path(
                    self.path, limit=2, anchor=self.commit
                )
                self._latest_commit = commits[0] if commits else None
                self._prev_commit = commits[1] if len(commits) > 1 else None
            self._prev_latest_loaded = True
