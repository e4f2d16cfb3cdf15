class ContentError(Exception):
    """Base exception for content repository operations"""


class InvalidPath(ContentError, ValueError):
    """Raised when a path does not match the path grammar"""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid path: {path!r}")
        self.path = path


class NotFound(ContentError, LookupError):
    """Raised when an object is not found in the repository"""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path} not found")
        self.path = path


class EmptyContent(ContentError, ValueError):
    """Raised when saving a page without content"""


class AlreadyExists(ContentError):
    """Raised when creating an object at a path that is already taken"""

    def __init__(self, path: str) -> None:
        super().__init__(f"Object already exists: {path}")
        self.path = path


class BackendError(ContentError, RuntimeError):
    """Raised when the underlying repository fails to carry out a write"""
