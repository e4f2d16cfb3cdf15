from .base import Blob, Commit, ContentRepo, Snapshot
from .errors import (
    AlreadyExists,
    BackendError,
    ContentError,
    EmptyContent,
    InvalidPath,
    NotFound,
)
from .objects import ContentObject, Page, Tree
from .resolver import resolve, resolve_or_fail, resolve_page, resolve_tree
from .settings import ContentSettings, load_settings
from .impl.memory import create_memory_content_repo
from .impl.git import create_git_content_repo
from .impl.sql import create_sql_content_repo

__all__ = [
    "Blob",
    "Commit",
    "ContentRepo",
    "Snapshot",
    "ContentError",
    "InvalidPath",
    "NotFound",
    "EmptyContent",
    "AlreadyExists",
    "BackendError",
    "ContentObject",
    "Page",
    "Tree",
    "resolve",
    "resolve_or_fail",
    "resolve_page",
    "resolve_tree",
    "ContentSettings",
    "load_settings",
    "create_memory_content_repo",
    "create_git_content_repo",
    "create_sql_content_repo",
]
