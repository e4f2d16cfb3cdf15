import mimetypes
from dataclasses import dataclass

from content_plane.base import Blob

MAGIC: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"<?xml", "application/xml"),
]

TEXT_SAMPLE_SIZE = 1024


@dataclass(frozen=True)
class MimeType:
    type: str

    @property
    def mediatype(self) -> str:
        return self.type.split("/", 1)[0]

    @property
    def subtype(self) -> str:
        return self.type.split("/", 1)[-1]

    def __str__(self) -> str:
        return self.type


class MimeDetector:
    """
    Detect mime type by extension, by content or fall back to a default.
    """

    def __init__(self, default: str) -> None:
        self.default = MimeType(default)

    def by_extension(self, extension: str) -> MimeType | None:
        if not extension:
            return None
        mime, _ = mimetypes.guess_type(f"file.{extension.lower()}", strict=False)
        return MimeType(mime) if mime else None

    def by_magic(self, content: Blob | None) -> MimeType | None:
        if not content:
            return None
        for signature, mime in MAGIC:
            if content.startswith(signature):
                return MimeType(mime)
        sample = content[:TEXT_SAMPLE_SIZE]
        if b"\0" in sample:
            return MimeType("application/octet-stream")
        return None

    def detect(self, extension: str, content: Blob | None) -> MimeType:
        return self.by_extension(extension) or self.by_magic(content) or self.default
